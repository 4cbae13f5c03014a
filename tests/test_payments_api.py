import pytest


@pytest.fixture
def invoice(client, admin_headers, invoice_payload):
    return client.post("/invoices/", json=invoice_payload, headers=admin_headers).get_json()["data"]["invoice"]


def _pay(client, headers, invoice_id, amount, p_type="cash", date_time="2024-06-01T10:30:00"):
    return client.post("/payments/", headers=headers, json={
        "p_type": p_type,
        "invoice_id": str(invoice_id),
        "date_time": date_time,
        "amount": amount,
    })


def _invoice(client, headers, invoice_id):
    return client.get(f"/invoices/{invoice_id}", headers=headers).get_json()["data"]["invoice"]


def test_full_payment_clears_due(client, admin_headers, invoice):
    res = _pay(client, admin_headers, invoice["id"], "180.00")
    assert res.status_code == 201
    payment = res.get_json()["data"]["payment"]
    assert payment["amount"] == "180.00"
    assert payment["formatted_amount"] == "₹180.00"
    assert payment["payment_summary"] == "CASH - ₹180.00 on 01/06/2024"

    updated = _invoice(client, admin_headers, invoice["id"])
    assert updated["paid_amount"] == "180.00"
    assert updated["due_amount"] == "0.00"
    assert updated["payment_status"] == "Paid"


def test_overpayment_rejected(client, admin_headers, invoice):
    res = _pay(client, admin_headers, invoice["id"], "200.00")
    assert res.status_code == 400
    assert "exceeds grand total" in res.get_json()["details"][0]

    unchanged = _invoice(client, admin_headers, invoice["id"])
    assert unchanged["paid_amount"] == "0.00"
    assert client.get("/payments/", headers=admin_headers).get_json()["data"]["payments"] == []


def test_partial_payments_accumulate(client, admin_headers, invoice):
    _pay(client, admin_headers, invoice["id"], "100.00", p_type="UPI")
    _pay(client, admin_headers, invoice["id"], "30.50", p_type="cheque")

    updated = _invoice(client, admin_headers, invoice["id"])
    assert updated["paid_amount"] == "130.50"
    assert updated["due_amount"] == "49.50"
    assert updated["payment_status"] == "Partially Paid"

    res = _pay(client, admin_headers, invoice["id"], "50.00")
    assert res.status_code == 400


def test_payment_validation(client, admin_headers, invoice):
    res = client.post("/payments/", headers=admin_headers, json={
        "p_type": "card", "invoice_id": str(invoice["id"]), "date_time": "2999-01-01T00:00:00", "amount": 0,
    })
    assert res.status_code == 400
    details = res.get_json()["details"]
    assert "p_type must be one of: cash, cheque, UPI" in details
    assert "date_time cannot be in the future" in details
    assert "amount cannot be less than 0.01" in details


def test_payment_for_unknown_invoice(client, admin_headers, invoice):
    assert _pay(client, admin_headers, "9999", "10.00").status_code == 404
    assert _pay(client, admin_headers, "not-an-id", "10.00").status_code == 404


def test_update_and_delete_resync_invoice(client, admin_headers, invoice):
    payment = _pay(client, admin_headers, invoice["id"], "100.00").get_json()["data"]["payment"]

    res = client.put(f"/payments/{payment['id']}", headers=admin_headers, json={"amount": "150.00"})
    assert res.status_code == 200
    assert _invoice(client, admin_headers, invoice["id"])["paid_amount"] == "150.00"

    res = client.put(f"/payments/{payment['id']}", headers=admin_headers, json={"amount": "181.00"})
    assert res.status_code == 400
    assert _invoice(client, admin_headers, invoice["id"])["paid_amount"] == "150.00"

    assert client.delete(f"/payments/{payment['id']}", headers=admin_headers).status_code == 200
    updated = _invoice(client, admin_headers, invoice["id"])
    assert updated["paid_amount"] == "0.00"
    assert updated["due_amount"] == "180.00"
    assert client.get(f"/payments/{payment['id']}", headers=admin_headers).status_code == 404


def test_shrinking_invoice_below_paid_amount_rejected(client, admin_headers, invoice):
    _pay(client, admin_headers, invoice["id"], "180.00")
    item = invoice["items"][0]
    res = client.put(f"/invoices/{invoice['id']}", headers=admin_headers, json={
        "items": [{"id": item["id"], "product_id": item["product"]["id"], "quantity": 1}],
    })
    assert res.status_code == 400
    assert _invoice(client, admin_headers, invoice["id"])["summary"]["grand_total"] == "180.00"


def test_list_summary_and_stats(client, admin_headers, invoice):
    _pay(client, admin_headers, invoice["id"], "100.00", p_type="UPI")
    _pay(client, admin_headers, invoice["id"], "50.00", p_type="cash")
    _pay(client, admin_headers, invoice["id"], "20.00", p_type="cash")

    data = client.get("/payments/?p_type=cash", headers=admin_headers).get_json()["data"]
    assert data["pagination"]["total"] == 2
    assert data["summary"] == {
        "total_amount": "70.00",
        "average_amount": "35.00",
        "min_amount": "20.00",
        "max_amount": "50.00",
    }

    stats = client.get("/payments/stats", headers=admin_headers).get_json()["data"]["stats"]
    assert stats[0]["p_type"] == "UPI"
    assert stats[0]["total_amount"] == "100.00"
    assert stats[1] == {"p_type": "cash", "total_amount": "70.00", "count": 2, "average_amount": "35.00"}

    by_invoice = client.get(f"/payments/invoice/{invoice['id']}", headers=admin_headers).get_json()["data"]
    assert by_invoice["count"] == 3
    assert by_invoice["due_amount"] == "10.00"


def test_list_rejects_bad_amount_filter(client, admin_headers):
    res = client.get("/payments/?min_amount=lots", headers=admin_headers)
    assert res.status_code == 400
    assert "min_amount must be a number" in res.get_json()["details"]
