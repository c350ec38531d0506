from datetime import date, timedelta

from fastapi.testclient import TestClient


def create_vendor_and_item(client: TestClient):
    vendor = client.post("/api/vendors", json={"name": "Lahore Mills", "email": "orders@lahoremills.pk"}).json()
    item = client.post(
        "/api/items",
        json={"name": "Cotton Yarn", "unit_price": "100.00", "purchase_price": "70.00", "tax_percentage": "17"},
    ).json()
    return vendor, item


def bill_body(vendor, item, **extra):
    return {
        "vendor_id": vendor["id"],
        "vendor_invoice_number": "LM-8841",
        "invoice_date": date.today().isoformat(),
        "due_date": (date.today() + timedelta(days=30)).isoformat(),
        "lines": [{"item_id": item["id"], "quantity": "10", "discount_percentage": "5"}],
        **extra,
    }


def test_bill_lifecycle(client: TestClient):
    vendor, item = create_vendor_and_item(client)

    created = client.post("/api/purchase-invoices", json=bill_body(vendor, item))
    assert created.status_code == 201
    bill = created.json()
    assert bill["grand_total"] == "778.05"

    posted = client.post(f"/api/purchase-invoices/{bill['id']}/post")
    assert posted.status_code == 200
    entry_id = posted.json()["journal_entry_id"]

    reversed_response = client.post(f"/api/journal-entries/{entry_id}/reverse")
    assert reversed_response.status_code == 409
    assert "cancel the purchase invoice" in reversed_response.json()["detail"]

    paid = client.post(f"/api/purchase-invoices/{bill['id']}/payments", json={"amount": "778.05"})
    assert paid.status_code == 200
    assert paid.json()["status"] == "PAID"

    payments = client.get("/api/payments", params={"vendor_id": vendor["id"]}).json()
    assert [(row["payment_type"], row["amount"], row["party_name"]) for row in payments] == [
        ("PAYMENT", "778.05", "Lahore Mills")
    ]

    assert client.post(f"/api/purchase-invoices/{bill['id']}/cancel").status_code == 409

    listed = client.get("/api/purchase-invoices", params={"status": "paid"}).json()
    assert [row["vendor_name"] for row in listed] == ["Lahore Mills"]


def test_overpayment_and_unknown_bill(client: TestClient):
    vendor, item = create_vendor_and_item(client)
    bill = client.post("/api/purchase-invoices", json=bill_body(vendor, item)).json()

    draft_payment = client.post(f"/api/purchase-invoices/{bill['id']}/payments", json={"amount": "10.00"})
    assert draft_payment.status_code == 409

    client.post(f"/api/purchase-invoices/{bill['id']}/post")
    over = client.post(f"/api/purchase-invoices/{bill['id']}/payments", json={"amount": "900.00"})
    assert over.status_code == 422

    assert client.get("/api/purchase-invoices/999").status_code == 404


def test_create_bill_from_purchase_order(client: TestClient):
    vendor, item = create_vendor_and_item(client)
    po = client.post(
        "/api/purchase-orders",
        json={"vendor_id": vendor["id"], "order_date": "2026-04-01", "lines": [{"item_id": item["id"], "quantity": "10"}]},
    ).json()
    bill_request = {"vendor_invoice_number": "LM-9001", "invoice_date": "2026-04-10", "due_date": "2026-05-10"}

    unreceived = client.post(f"/api/purchase-orders/{po['id']}/create-bill", json=bill_request)
    assert unreceived.status_code == 409

    for action in ("submit", "approve", "send"):
        client.post(f"/api/purchase-orders/{po['id']}/{action}")
    client.post(
        f"/api/purchase-orders/{po['id']}/receive",
        json={"lines": [{"line_id": po["lines"][0]["id"], "qty_received": "10"}]},
    )

    missing = client.post(f"/api/purchase-orders/{po['id']}/create-bill", json={"invoice_date": "2026-04-10"})
    assert missing.status_code == 422

    created = client.post(f"/api/purchase-orders/{po['id']}/create-bill", json=bill_request)
    assert created.status_code == 201
    bill = created.json()
    assert bill["purchase_order_id"] == po["id"]
    assert bill["vendor_invoice_number"] == "LM-9001"
    assert bill["grand_total"] == po["total_amount"] == "819.00"

    duplicate = client.post(f"/api/purchase-orders/{po['id']}/create-bill", json=bill_request)
    assert duplicate.status_code == 409
