import pytest
from fastapi.testclient import TestClient

from database import get_db
from mcp_server import app


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_extract_receipt(client):
    resp = client.post("/tools/extract_receipt", json={"text": "Receipt\nWalmart\n03/04/2025\nTotal 20.00"})

    assert resp.status_code == 200
    assert resp.json() == {"total": 20.0, "date": "2025-03-04", "store": "Walmart"}


def test_extract_receipt_empty_text(client):
    body = client.post("/tools/extract_receipt", json={}).json()
    assert body["total"] == 0
    assert body["store"] == "Unknown"


def test_goal(client):
    body = client.get("/goal").json()

    assert body["name"] == "House"
    assert body["saved"] == pytest.approx(1944.17)
    assert body["months_to_goal"] == 11


def test_update_goal_saved(client):
    body = client.put("/goal/saved", json={"saved": 21000}).json()
    assert body["remaining"] == pytest.approx(1000)
    assert body["months_to_goal"] == 1


def test_daily_challenge(client):
    body = client.get("/tools/daily_challenge").json()
    assert body["monthly_goal"] == 2000
    assert body["amount"] >= 0


def test_create_and_delete_transaction(client):
    resp = client.post(
        "/transactions",
        json={"type": "expense", "amount": 12.5, "category": "Taxi", "date": "2025-05-01"},
    )
    assert resp.status_code == 201
    txn = resp.json()
    assert txn["category"] == "Taxi"
    assert client.get("/goal").json()["saved"] == pytest.approx(1944.17 - 12.5)

    listed = client.get("/transactions").json()
    assert [t["id"] for t in listed] == [txn["id"]]

    assert client.delete(f"/transactions/{txn['id']}").status_code == 204
    assert client.get("/transactions").json() == []


def test_income_raises_goal(client):
    resp = client.post("/transactions", json={"type": "income", "amount": 100})
    assert resp.status_code == 201
    assert resp.json()["category"] is None
    assert client.get("/goal").json()["saved"] == pytest.approx(2044.17)


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "transfer", "amount": 5},
        {"type": "expense", "amount": 0},
        {"type": "expense", "amount": 5, "date": "05/01/2025"},
    ],
)
def test_invalid_transaction_rejected(client, payload):
    assert client.post("/transactions", json=payload).status_code == 422


def test_receipt_lifecycle(client):
    resp = client.post(
        "/receipts",
        json={
            "image_uri": "goalpulse_data/receipts/receipt_1.jpg",
            "receipt": {"total": 8.4, "date": "2025-02-02", "store": "Deli"},
            "extracted_text": "Deli\nTotal 8.40",
        },
    )
    assert resp.status_code == 201
    receipt = resp.json()
    assert receipt["store"] == "Deli"

    assert len(client.get("/receipts").json()) == 1
    [txn] = client.get("/transactions").json()
    assert txn["receipt_id"] == receipt["id"]
    assert txn["note"] == "From receipt: Deli"

    assert client.get(f"/receipts/{receipt['id']}").json()["extracted_text"] == "Deli\nTotal 8.40"
    assert client.delete(f"/receipts/{receipt['id']}").status_code == 204
    assert client.get(f"/receipts/{receipt['id']}").status_code == 404
    assert client.get("/transactions").json() == []


def test_missing_receipt(client):
    assert client.get("/receipts/999").status_code == 404
    assert client.delete("/receipts/999").status_code == 404


def test_settings(client):
    assert client.get("/settings/currency").json() == {"key": "currency", "value": "USD"}
    assert client.put("/settings/currency", json={"value": "EUR"}).status_code == 200
    assert client.get("/settings/currency").json()["value"] == "EUR"
    assert client.get("/settings/unknown").status_code == 404


def test_summary(client):
    client.post("/transactions", json={"type": "expense", "amount": 10, "category": "Health"})
    client.post("/transactions", json={"type": "income", "amount": 50})

    body = client.get("/summary").json()

    assert body["total_income"] == 50
    assert body["total_expenses"] == 10
    assert body["spending"]["today"] == 10
    assert body["categories"] == [{"category": "Health", "total": 10.0}]


def test_exports(client):
    client.post("/transactions", json={"type": "expense", "amount": 3, "category": "Taxi"})

    csv_resp = client.get("/export/csv")
    assert csv_resp.headers["content-type"].startswith("text/csv")
    assert csv_resp.text.splitlines()[0] == "id,type,amount,category,date,note,created_at"

    payload = client.get("/export/json").json()
    assert payload["transactions"][0]["category"] == "Taxi"


def test_clear_data(client):
    client.post("/transactions", json={"type": "expense", "amount": 3})

    assert client.post("/data/clear").status_code == 204
    assert client.get("/transactions").json() == []
    assert client.get("/goal").json()["saved"] == 0
