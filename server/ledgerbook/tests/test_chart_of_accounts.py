from fastapi.testclient import TestClient


def test_list_seeded_chart_of_accounts(client: TestClient):
    response = client.get("/api/accounts")
    assert response.status_code == 200
    codes = [account["code"] for account in response.json()]
    assert codes == sorted(codes)
    assert {"1000", "1200", "2000", "2300", "4000"} <= set(codes)

    assets = client.get("/api/accounts", params={"type": "ASSET"}).json()
    assert all(account["normal_balance"] == "DEBIT" for account in assets)


def test_create_update_delete_chart_account(client: TestClient):
    created = client.post(
        "/api/accounts",
        json={"name": "Supplies Expense", "code": "6400", "type": "EXPENSE", "opening_balance": "25.00"},
    )
    assert created.status_code == 201
    account = created.json()
    assert account["normal_balance"] == "DEBIT"
    assert account["current_balance"] == "25.00"

    updated = client.patch(
        f"/api/accounts/{account['id']}",
        json={"name": "Office Supplies Expense", "is_active": False},
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Office Supplies Expense"
    assert updated.json()["is_active"] is False

    deleted = client.delete(f"/api/accounts/{account['id']}")
    assert deleted.status_code == 200


def test_duplicate_code_returns_conflict(client: TestClient):
    response = client.post("/api/accounts", json={"name": "Petty Cash", "code": "1000", "type": "ASSET"})
    assert response.status_code == 409


def test_credit_normal_types(client: TestClient):
    response = client.post("/api/accounts", json={"name": "Loan Payable", "code": "2500", "type": "LIABILITY"})
    assert response.json()["normal_balance"] == "CREDIT"


def test_delete_in_use_account_returns_conflict(client: TestClient):
    accounts = {account["code"]: account["id"] for account in client.get("/api/accounts").json()}
    client.post(
        "/api/journal-entries",
        json={
            "entry_date": "2026-03-01",
            "description": "Cash sale",
            "lines": [
                {"account_id": accounts["1000"], "debit": "100", "credit": "0"},
                {"account_id": accounts["4000"], "debit": "0", "credit": "100"},
            ],
        },
    )

    response = client.delete(f"/api/accounts/{accounts['4000']}")
    assert response.status_code == 409

    header = client.delete(f"/api/accounts/{accounts['4']}")
    assert header.status_code == 409


def test_reports_endpoints(client: TestClient):
    accounts = {account["code"]: account["id"] for account in client.get("/api/accounts").json()}
    entry = client.post(
        "/api/journal-entries",
        json={
            "entry_date": "2026-03-01",
            "description": "Cash sale",
            "lines": [
                {"account_id": accounts["1000"], "debit": "1500", "credit": "0"},
                {"account_id": accounts["4000"], "debit": "0", "credit": "1500"},
            ],
        },
    ).json()
    client.post(f"/api/journal-entries/{entry['id']}/post")

    ledger = client.get(f"/api/accounts/{accounts['1000']}/ledger").json()
    assert ledger["closing_balance"] == "1500.00"
    assert ledger["lines"][0]["entry_no"] == entry["entry_no"]

    summary = client.get("/api/ledger/summary").json()
    assert {row["account_code"] for row in summary} == {"1000", "4000"}

    trial = client.get("/api/trial-balance").json()
    assert trial["is_balanced"] is True
    assert trial["total_debits"] == "1500.00"

    pnl = client.get("/api/profit-loss").json()
    assert pnl["net_profit"] == "1500.00"

    sheet = client.get("/api/balance-sheet").json()
    assert sheet["is_balanced"] is True
    assert sheet["current_earnings"] == "1500.00"

    assert client.get("/api/accounts/9999/ledger").status_code == 404


def test_root_status(client: TestClient):
    assert client.get("/").json() == {"status": "ok"}
