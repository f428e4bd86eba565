import re

import pytest


def _create_medicine(client, **overrides):
    payload = {"name": "Paracetamol", "unit": "tablet", "price": 10.0, "minimum_stock": 5, "current_stock": 50}
    payload.update(overrides)
    response = client.post("/medicines/", json=payload)
    assert response.status_code == 201
    return response.get_json()


def test_health(client):
    assert client.get("/api/health").get_json()["status"] == "ok"


def test_medicine_crud(client):
    medicine = _create_medicine(client, expiry_date="2027-01-31")
    assert medicine["price"] == 10.0
    assert medicine["expiry_date"] == "2027-01-31"

    response = client.patch(f"/medicines/{medicine['id']}", json={"price": 12.5, "supplier": "Kalbe"})
    assert response.status_code == 200
    assert response.get_json()["price"] == 12.5

    assert client.get(f"/medicines/{medicine['id']}").get_json()["supplier"] == "Kalbe"
    assert client.get("/medicines/999").status_code == 404
    assert len(client.get("/medicines/search?q=para").get_json()) == 1


def test_medicine_patch_rejects_stock_edits(client):
    medicine = _create_medicine(client)
    response = client.patch(f"/medicines/{medicine['id']}", json={"current_stock": 1})
    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"


def test_stock_movement_endpoints(client):
    medicine = _create_medicine(client, current_stock=20)

    response = client.post("/stock/transactions", json={"medicine_id": medicine["id"], "type": "OUT", "quantity": 25})
    assert response.status_code == 409
    body = response.get_json()
    assert body["error"] == "insufficient_stock"
    assert body["available"] == 20
    assert body["requested"] == 25

    response = client.post("/stock/transactions", json={"medicine_id": medicine["id"], "type": "IN", "quantity": 0})
    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_quantity"

    response = client.post("/stock/transactions", json={"medicine_id": 999, "type": "IN", "quantity": 1})
    assert response.status_code == 404

    response = client.post(
        "/stock/transactions",
        json={"medicine_id": medicine["id"], "type": "IN", "quantity": 5, "notes": "Restock"},
    )
    assert response.status_code == 201
    assert response.get_json()["type"] == "IN"

    movements = client.get(f"/stock/transactions/medicine/{medicine['id']}").get_json()
    assert [m["quantity"] for m in movements] == [5, 20]
    assert client.get(f"/medicines/{medicine['id']}").get_json()["current_stock"] == 25
    assert client.get("/stock/verify").get_json()["balances"] == {str(medicine["id"]): 25}

    history = client.get("/stock/history?start_date=2000-01-01T00:00:00&end_date=2100-01-01T00:00:00")
    assert len(history.get_json()) == 2
    assert client.get("/stock/history").status_code == 400


def test_sale_lifecycle(client):
    medicine = _create_medicine(client)

    response = client.post("/sales/transactions", json={
        "patient_id": None,
        "payment_method": "CASH",
        "payment_received": 60,
        "notes": None,
        "items": [{"medicine_id": medicine["id"], "quantity": 5}],
    })
    assert response.status_code == 201
    sale = response.get_json()
    assert sale["total_amount"] == 50.0
    assert sale["change_amount"] == 10.0
    assert sale["status"] == "COMPLETED"

    detail = client.get(f"/sales/transactions/{sale['id']}").get_json()
    assert detail["items"][0]["quantity"] == 5

    receipt = client.get(f"/sales/transactions/{sale['id']}/receipt").get_json()
    assert receipt["clinic_name"] == "Apotek"
    assert receipt["items"][0]["medicine_name"] == "Paracetamol"

    assert [s["id"] for s in client.get("/sales/transactions/today").get_json()] == [sale["id"]]

    response = client.post(f"/sales/transactions/{sale['id']}/cancel")
    assert response.status_code == 200
    assert response.get_json() == {"cancelled": True, "outcome": "CANCELLED"}
    assert client.get(f"/medicines/{medicine['id']}").get_json()["current_stock"] == 50

    response = client.post(f"/sales/transactions/{sale['id']}/cancel")
    assert response.status_code == 409
    assert response.get_json() == {"cancelled": False, "outcome": "ALREADY_CANCELLED"}

    response = client.post("/sales/transactions/999/cancel")
    assert response.status_code == 404
    assert response.get_json()["outcome"] == "NOT_FOUND"


def test_sale_errors(client):
    medicine = _create_medicine(client, current_stock=2)

    response = client.post("/sales/transactions", json={
        "payment_method": "CASH",
        "payment_received": 5,
        "items": [{"medicine_id": medicine["id"], "quantity": 1}],
    })
    assert response.status_code == 409
    assert response.get_json()["error"] == "insufficient_payment"

    response = client.post("/sales/transactions", json={
        "payment_method": "CASH",
        "payment_received": 100,
        "items": [],
    })
    assert response.status_code == 400

    assert client.get("/sales/transactions").get_json() == []
    assert client.get("/sales/transactions/1/receipt").status_code == 404


@pytest.mark.parametrize("received", [1e30, "10.005"])
def test_sale_rejects_unstorable_payment(client, received):
    medicine = _create_medicine(client, current_stock=2)

    response = client.post("/sales/transactions", json={
        "payment_method": "CASH",
        "payment_received": received,
        "items": [{"medicine_id": medicine["id"], "quantity": 1}],
    })

    assert response.status_code == 400
    assert response.get_json()["field"] == "payment_received"
    assert client.get("/sales/transactions").get_json() == []
    assert client.get(f"/medicines/{medicine['id']}").get_json()["current_stock"] == 2


def test_sale_amounts_are_exact_json_numbers(client):
    medicine = _create_medicine(client, price=3.35, current_stock=10)

    response = client.post("/sales/transactions", json={
        "payment_method": "CASH",
        "payment_received": 20,
        "items": [{"medicine_id": medicine["id"], "quantity": 3}],
    })
    assert response.status_code == 201

    listed = client.get("/sales/transactions")
    sale = listed.get_json()[0]
    assert isinstance(sale["total_amount"], float)
    assert sale["total_amount"] == 10.05
    assert sale["change_amount"] == 9.95
    assert re.search(rb'"total_amount":\s*10\.05[,\s}]', listed.data)

    detail = client.get(f"/sales/transactions/{sale['id']}").get_json()
    assert detail["items"][0]["unit_price"] == 3.35
    assert detail["items"][0]["total_price"] == 10.05


def test_report_rejects_malformed_dates(client):
    response = client.get("/dashboard/reports/stock?start_date=2026-01-01junk&end_date=2026-12-31")
    assert response.status_code == 400
    assert response.get_json()["field"] == "start_date"


def test_patient_endpoints(client):
    response = client.post("/patients/", json={"name": "Ayu", "gender": "P", "birth_date": "1995-02-01"})
    assert response.status_code == 201
    patient = response.get_json()

    assert client.get("/patients/search?q=ay").get_json()[0]["id"] == patient["id"]
    assert client.patch(f"/patients/{patient['id']}", json={"phone": "0813"}).get_json()["phone"] == "0813"
    assert client.get(f"/patients/{patient['id']}/visits").get_json() == []
    assert client.delete(f"/patients/{patient['id']}").status_code == 200
    assert client.get(f"/patients/{patient['id']}").status_code == 404


def test_settings_endpoints(client):
    assert client.get("/settings/clinic").get_json()["name"] == "Bidan Hebat Management"

    created = client.post("/settings/initialize").get_json()["created"]
    assert "clinic_name" in created

    client.put("/settings/clinic", json={"name": "Klinik Ibu", "address": "Jl. Kenanga"})
    assert client.get("/settings/clinic").get_json()["address"] == "Jl. Kenanga"

    response = client.put("/settings/", json={"key": "receipt_footer_text", "value": "Terima kasih"})
    assert response.status_code == 200
    assert client.get("/settings/receipt_footer_text").get_json()["value"] == "Terima kasih"
    assert client.get("/settings/missing").status_code == 404


def test_dashboard_endpoints(client):
    medicine = _create_medicine(client)
    client.post("/sales/transactions", json={
        "payment_method": "DEBIT",
        "payment_received": 20,
        "items": [{"medicine_id": medicine["id"], "quantity": 2}],
    })

    stats = client.get("/dashboard/stats").get_json()
    assert stats["total_medicines"] == 1
    assert stats["today_sales"] == 20.0
    assert stats["today_transactions"] == 1
    assert client.get("/dashboard/today-revenue").get_json()["revenue"] == 20.0

    assert client.get("/dashboard/reports/sales").status_code == 400
    report = client.get("/dashboard/reports/stock?start_date=2026-01-01&end_date=2026-12-31").get_json()
    assert report["total_medicines"] == 1
