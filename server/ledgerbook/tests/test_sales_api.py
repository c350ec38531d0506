from datetime import date, timedelta

from fastapi.testclient import TestClient


def create_customer_and_item(client: TestClient):
    customer = client.post("/api/customers", json={"name": "Karachi Traders", "ntn": "1234567-8"}).json()
    item = client.post(
        "/api/items",
        json={"name": "Cotton Yarn", "sku": "YARN-40", "unit_price": "100.00", "tax_percentage": "18"},
    ).json()
    return customer, item


def invoice_body(customer, item, **line):
    return {
        "customer_id": customer["id"],
        "invoice_date": date.today().isoformat(),
        "due_date": (date.today() + timedelta(days=30)).isoformat(),
        "lines": [{"item_id": item["id"], "quantity": "10", "discount_percentage": "10", **line}],
    }


def test_invoice_lifecycle(client: TestClient):
    customer, item = create_customer_and_item(client)

    created = client.post("/api/sales-invoices", json=invoice_body(customer, item))
    assert created.status_code == 201
    invoice = created.json()
    assert invoice["grand_total"] == "1062.00"
    assert invoice["lines"][0]["tax_amount"] == "162.00"

    listed = client.get("/api/sales-invoices").json()
    assert listed[0]["customer_name"] == "Karachi Traders"

    posted = client.post(f"/api/sales-invoices/{invoice['id']}/post")
    assert posted.status_code == 200
    assert posted.json()["status"] == "POSTED"
    assert posted.json()["journal_entry_id"] is not None

    paid = client.post(f"/api/sales-invoices/{invoice['id']}/payments", json={"amount": "1062.00"})
    assert paid.status_code == 200
    assert paid.json()["status"] == "PAID"
    assert paid.json()["amount_due"] == "0.00"

    cancelled = client.post(f"/api/sales-invoices/{invoice['id']}/cancel", json={"reason": "Duplicate"})
    assert cancelled.status_code == 409


def test_invoice_validation_errors_are_reported_per_field(client: TestClient):
    customer, item = create_customer_and_item(client)

    response = client.post("/api/sales-invoices", json=invoice_body(customer, item, quantity="abc"))

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == {"lines[0].quantity": "A numeric value is required."}


def test_cancel_draft_invoice(client: TestClient):
    customer, item = create_customer_and_item(client)
    invoice = client.post("/api/sales-invoices", json=invoice_body(customer, item)).json()

    cancelled = client.post(f"/api/sales-invoices/{invoice['id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"
    assert cancelled.json()["amount_due"] == "0.00"


def test_line_item_preview(client: TestClient):
    response = client.post(
        "/api/calculations/line-items",
        json={
            "lines": [
                {"quantity": "10", "unit_price": "100", "discount_percentage": "10", "tax_percentage": "18"},
                {"quantity": "", "unit_price": "abc"},
            ]
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["lines"][0]["taxable_amount"] == "900.00"
    assert data["lines"][1]["line_total"] == "0.00"
    assert data["totals"] == {
        "subtotal": "1000.00",
        "total_discount": "100.00",
        "total_tax": "162.00",
        "grand_total": "1062.00",
    }


def test_archive_customer(client: TestClient):
    customer, _ = create_customer_and_item(client)
    archived = client.delete(f"/api/customers/{customer['id']}")
    assert archived.json()["is_active"] is False
    assert client.get("/api/customers/999").status_code == 404


def test_invoice_journal_entry_is_managed_through_the_invoice(client: TestClient):
    customer, item = create_customer_and_item(client)
    invoice = client.post("/api/sales-invoices", json=invoice_body(customer, item)).json()
    posted = client.post(f"/api/sales-invoices/{invoice['id']}/post").json()
    entry_id = posted["journal_entry_id"]

    reversed_response = client.post(f"/api/journal-entries/{entry_id}/reverse")
    assert reversed_response.status_code == 409
    assert "cancel the sales invoice" in reversed_response.json()["detail"]
    assert client.delete(f"/api/journal-entries/{entry_id}").status_code == 409
    assert client.get(f"/api/journal-entries/{entry_id}").json()["status"] == "POSTED"

    cancelled = client.post(f"/api/sales-invoices/{invoice['id']}/cancel")
    assert cancelled.status_code == 200
    assert client.get(f"/api/journal-entries/{entry_id}").json()["status"] == "REVERSED"
