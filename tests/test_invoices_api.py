from src.extensions import db
from company.company import Company


def _create(client, headers, payload):
    return client.post("/invoices/", json=payload, headers=headers)


def test_create_invoice_computes_summary(client, admin_headers, invoice_payload):
    res = _create(client, admin_headers, invoice_payload)
    assert res.status_code == 201
    body = res.get_json()
    assert body["statusCode"] == 201
    invoice = body["data"]["invoice"]
    assert invoice["summary"]["subtotal"] == "200.00"
    assert invoice["summary"]["total_discount"] == "20.00"
    assert invoice["summary"]["grand_total"] == "180.00"
    assert invoice["summary"]["formatted_grand_total"] == "₹180.00"
    assert invoice["items"][0]["total"] == "180.00"
    assert invoice["items"][0]["profit"] == "60.00"
    assert invoice["paid_amount"] == "0.00"
    assert invoice["due_amount"] == "180.00"
    assert invoice["payment_status"] == "Unpaid"
    assert invoice["customer"]["name"] == "Shree Prints"


def test_fixed_discount_never_goes_negative(client, admin_headers, invoice_payload):
    invoice_payload["items"][0].update({"discount_type": "fixed", "discount_value": 250})
    res = _create(client, admin_headers, invoice_payload)
    assert res.status_code == 201
    invoice = res.get_json()["data"]["invoice"]
    assert invoice["items"][0]["total"] == "0.00"
    assert invoice["items"][0]["discount_amount"] == "200.00"
    assert invoice["summary"]["grand_total"] == "0.00"


def test_rate_defaults_to_product_price(client, admin_headers, customer, product):
    payload = {"customer_id": customer.id, "items": [{"product_id": product.id, "quantity": "1.5"}]}
    invoice = _create(client, admin_headers, payload).get_json()["data"]["invoice"]
    assert invoice["items"][0]["rate"] == "100.00"
    assert invoice["items"][0]["quantity"] == "1.500"
    assert invoice["summary"]["grand_total"] == "150.00"


def test_seller_identity_from_company_profile(client, admin_headers, invoice_payload):
    db.session.add(Company(company_name="Aavkar", company_legal_name="Aavkar Graphics LLP",
                           primary_contact_number="8980915579", email="hello@aavkar.in",
                           company_address="Surat"))
    db.session.commit()
    invoice = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    assert invoice["from"]["name"] == "Aavkar"
    assert invoice["from"]["email"] == "hello@aavkar.in"


def test_seller_identity_falls_back_to_config(client, admin_headers, invoice_payload):
    invoice = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    assert invoice["from"]["name"] == "Aavkar Graphics"


def test_create_invoice_reports_all_validation_errors(client, admin_headers, customer):
    payload = {"customer_id": customer.id, "items": [{"quantity": 0, "discount_value": 150}]}
    res = _create(client, admin_headers, payload)
    assert res.status_code == 400
    body = res.get_json()
    assert body["message"] == "Validation failed"
    assert "items[0].product_id is required" in body["details"]
    assert "items[0].quantity must be greater than 0" in body["details"]
    assert "items[0].discount_value cannot exceed 100 for a percentage discount" in body["details"]


def test_create_invoice_requires_items(client, admin_headers, customer):
    res = _create(client, admin_headers, {"customer_id": customer.id, "items": []})
    assert res.status_code == 400
    assert "items must contain at least one item" in res.get_json()["details"]


def test_unknown_product_is_not_found(client, admin_headers, customer, product):
    payload = {"customer_id": customer.id, "items": [
        {"product_id": product.id, "quantity": 1},
        {"product_id": 999, "quantity": 1},
    ]}
    res = _create(client, admin_headers, payload)
    assert res.status_code == 404
    assert res.get_json()["details"] == ["Product 999 not found"]


def test_unknown_customer_is_not_found(client, admin_headers, product):
    payload = {"customer_id": 42, "items": [{"product_id": product.id, "quantity": 1}]}
    res = _create(client, admin_headers, payload)
    assert res.status_code == 404
    assert res.get_json()["message"] == "Customer not found"


def test_duplicate_supplied_number_rejected(client, admin_headers, invoice_payload):
    invoice_payload["invoice_number"] = "INV-2024-0001"
    assert _create(client, admin_headers, invoice_payload).status_code == 201
    res = _create(client, admin_headers, invoice_payload)
    assert res.status_code == 400
    assert res.get_json()["error"] == "Duplicate entry"


def test_requires_token(client, invoice_payload):
    res = _create(client, {}, invoice_payload)
    assert res.status_code == 401
    assert res.get_json()["message"] == "Access token missing"


def test_soft_deleted_invoice_is_not_found(client, admin_headers, invoice_payload):
    invoice_id = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]["id"]
    res = client.delete(f"/invoices/{invoice_id}", headers=admin_headers)
    assert res.status_code == 200

    assert client.get(f"/invoices/{invoice_id}", headers=admin_headers).status_code == 404
    listed = client.get("/invoices/", headers=admin_headers).get_json()["data"]
    assert listed["invoices"] == []
    assert listed["pagination"]["total"] == 0


def test_update_merges_items(client, admin_headers, invoice_payload, second_product):
    created = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    kept_id = created["items"][0]["id"]

    res = client.put(f"/invoices/{created['id']}", headers=admin_headers, json={
        "invoice_number": "INV-1999-0001",
        "round_off_total": True,
        "items": [
            {"id": kept_id, "product_id": invoice_payload["items"][0]["product_id"], "quantity": 1},
            {"product_id": second_product.id, "quantity": 3},
        ],
    })
    assert res.status_code == 200
    invoice = res.get_json()["data"]["invoice"]
    assert invoice["invoice_number"] == created["invoice_number"]
    assert [item["id"] == kept_id for item in invoice["items"]] == [True, False]
    # 1 x 100 less 10% + 3 x 25.50 = 166.50, rounded to 167
    assert invoice["summary"]["subtotal"] == "176.50"
    assert invoice["summary"]["grand_total"] == "167.00"
    assert invoice["summary"]["round_off"] == "0.50"


def test_update_drops_omitted_items(client, admin_headers, invoice_payload, second_product):
    invoice_payload["items"].append({"product_id": second_product.id, "quantity": 2})
    created = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    first = created["items"][0]

    res = client.put(f"/invoices/{created['id']}", headers=admin_headers, json={
        "items": [{"id": first["id"], "product_id": first["product"]["id"], "quantity": 2}],
    })
    invoice = res.get_json()["data"]["invoice"]
    assert len(invoice["items"]) == 1
    assert invoice["summary"]["grand_total"] == "180.00"


def test_update_keeps_fixed_discount_of_existing_item(client, admin_headers, invoice_payload):
    invoice_payload["items"][0].update({"discount_type": "fixed", "discount_value": 50})
    created = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    item = created["items"][0]

    res = client.put(f"/invoices/{created['id']}", headers=admin_headers, json={
        "items": [{"id": item["id"], "product_id": item["product"]["id"], "quantity": 2, "discount_value": 150}],
    })
    assert res.status_code == 200
    invoice = res.get_json()["data"]["invoice"]
    assert invoice["items"][0]["discount_type"] == "fixed"
    assert invoice["items"][0]["discount_amount"] == "150.00"
    assert invoice["summary"]["grand_total"] == "50.00"


def test_update_still_caps_percentage_discount_of_existing_item(client, admin_headers, invoice_payload):
    created = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    item = created["items"][0]

    res = client.put(f"/invoices/{created['id']}", headers=admin_headers, json={
        "items": [{"id": item["id"], "product_id": item["product"]["id"], "quantity": 2, "discount_value": 150}],
    })
    assert res.status_code == 400
    assert res.get_json()["details"] == ["discount_value cannot exceed 100 for a percentage discount"]


def test_update_rejects_repeated_item_id(client, admin_headers, invoice_payload):
    created = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    item = created["items"][0]
    entry = {"id": item["id"], "product_id": item["product"]["id"], "quantity": 1}

    res = client.put(f"/invoices/{created['id']}", headers=admin_headers, json={"items": [entry, dict(entry)]})
    assert res.status_code == 400
    body = res.get_json()
    assert body["error"] != "Duplicate entry"
    assert body["details"] == ["items[1].id is listed more than once"]

    unchanged = client.get(f"/invoices/{created['id']}", headers=admin_headers).get_json()["data"]["invoice"]
    assert len(unchanged["items"]) == 1
    assert unchanged["summary"]["grand_total"] == "180.00"


def test_update_status(client, admin_headers, invoice_payload):
    invoice_id = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]["id"]
    res = client.put(f"/invoices/{invoice_id}/status", headers=admin_headers, json={"status": "confirmed"})
    assert res.get_json()["data"]["invoice"]["status"] == "confirmed"

    res = client.put(f"/invoices/{invoice_id}/status", headers=admin_headers, json={"status": "shipped"})
    assert res.status_code == 400


def test_list_filters_and_summary(client, admin_headers, invoice_payload):
    _create(client, admin_headers, invoice_payload)
    _create(client, admin_headers, invoice_payload)
    res = client.get("/invoices/?limit=1&search=shree", headers=admin_headers)
    data = res.get_json()["data"]
    assert len(data["invoices"]) == 1
    assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}
    assert data["summary"]["total_amount"] == "360.00"
    assert data["summary"]["total_unpaid_count"] == 2
    assert data["total_customer_count"] == 1


def test_list_rejects_bad_sort(client, admin_headers):
    res = client.get("/invoices/?sort_by=password", headers=admin_headers)
    assert res.status_code == 400


def test_statistics_and_fiscal_year_count(client, admin_headers, invoice_payload):
    invoice_payload["issued_date"] = "2024-05-10T10:00:00Z"
    _create(client, admin_headers, invoice_payload)
    invoice_payload["issued_date"] = "2025-02-01T10:00:00Z"
    _create(client, admin_headers, invoice_payload)
    invoice_payload["issued_date"] = "2025-04-02T10:00:00Z"
    _create(client, admin_headers, invoice_payload)

    count = client.get("/invoices/count?fiscal_year=2024", headers=admin_headers).get_json()["data"]
    assert count["count"] == 2
    assert count["date_range"]["start"].startswith("2024-04-01")

    stats = client.get("/invoices/statistics", headers=admin_headers).get_json()["data"]
    assert stats["general"]["total_invoices"] == 3
    assert stats["general"]["total_amount"] == "540.00"
    assert stats["general"]["average_invoice_amount"] == "180.00"
    assert stats["status_wise"][0] == {"status": "draft", "count": 3, "total_amount": "540.00",
                                       "total_due": "540.00"}


def test_invoice_item_endpoints(client, admin_headers, invoice_payload, second_product):
    invoice = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]

    res = client.post("/invoice-items/", headers=admin_headers, json={
        "invoice_id": invoice["id"], "product_id": second_product.id, "quantity": 4, "priority": "High",
    })
    assert res.status_code == 201
    item = res.get_json()["data"]["invoice_item"]
    assert item["total"] == "102.00"
    assert item["position"] == 1

    refreshed = client.get(f"/invoices/{invoice['id']}", headers=admin_headers).get_json()["data"]["invoice"]
    assert refreshed["summary"]["grand_total"] == "282.00"

    res = client.put(f"/invoice-items/{item['id']}/status", headers=admin_headers,
                     json={"steps": "Printing", "printing_report": "Plates ready"})
    assert res.get_json()["data"]["invoice_item"]["steps"] == "Printing"

    high = client.get("/invoice-items/priority/High", headers=admin_headers).get_json()["data"]
    assert high["count"] == 1

    stats = client.get(f"/invoice-items/statistics?invoice_id={invoice['id']}",
                       headers=admin_headers).get_json()["data"]
    assert stats["total_items"] == 2
    assert stats["total_amount"] == "282.00"

    assert client.delete(f"/invoice-items/{item['id']}", headers=admin_headers).status_code == 200
    refreshed = client.get(f"/invoices/{invoice['id']}", headers=admin_headers).get_json()["data"]["invoice"]
    assert refreshed["summary"]["grand_total"] == "180.00"
    assert client.get(f"/invoice-items/{item['id']}", headers=admin_headers).status_code == 404


def test_items_of_deleted_invoice_are_hidden(client, admin_headers, invoice_payload):
    invoice = _create(client, admin_headers, invoice_payload).get_json()["data"]["invoice"]
    item_id = invoice["items"][0]["id"]
    client.delete(f"/invoices/{invoice['id']}", headers=admin_headers)

    assert client.get(f"/invoice-items/{item_id}", headers=admin_headers).status_code == 404
    listed = client.get("/invoice-items/", headers=admin_headers).get_json()["data"]
    assert listed["invoice_items"] == []
