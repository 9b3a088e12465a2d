"""
End-to-end tests through the FastAPI routes.
"""
import io

import pytest


def _vendor(client, **overrides):
    payload = {"name": "Hosur Road Suppliers", "gstin": "29PQRST6789K1Z2"}
    payload.update(overrides)
    response = client.post("/vendor/", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def _item(client, **overrides):
    payload = {"name": "Toor Dal 1kg", "barcode": "8901111111111", "gst_rate": 18}
    payload.update(overrides)
    response = client.post("/stock/items/", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.integration
class TestVendorAndItems:

    def test_state_code_is_derived_from_gstin(self, client):
        vendor = _vendor(client)
        assert vendor["state_code"] == "29"
        assert vendor["state"] == "Karnataka"

    def test_invalid_gstin_is_rejected(self, client):
        response = client.post("/vendor/", json={"name": "Bad", "gstin": "12345"})
        assert response.status_code == 422

    def test_new_gstin_moves_vendor_to_its_state(self, client, local_vendor):
        response = client.put(f"/vendor/{local_vendor.id}", json={"gstin": "29PQRST6789K1Z2"})

        assert response.status_code == 200, response.text
        assert response.json()["state_code"] == "29"
        assert response.json()["state"] == "Karnataka"

        preview = client.post(
            "/tax/preview",
            json={"vendor_id": local_vendor.id, "lines": [{"quantity": 10, "rate": 100, "gst_rate": 18}]},
        ).json()
        assert preview["is_intrastate"] is False
        assert preview["igst_amount"] == 180

    def test_state_code_must_match_gstin(self, client, local_vendor):
        response = client.post(
            "/vendor/", json={"name": "Mismatch", "gstin": "29PQRST6789K1Z2", "state_code": "33"}
        )
        assert response.status_code == 400

        response = client.put(f"/vendor/{local_vendor.id}", json={"state_code": "29"})
        assert response.status_code == 400
        assert client.get(f"/vendor/{local_vendor.id}").json()["state_code"] == "33"

    def test_gstin_with_unknown_state_prefix_rejected(self, client):
        response = client.post("/vendor/", json={"name": "Nowhere Traders", "gstin": "99ABCDE1234F1Z5"})
        assert response.status_code == 400

    def test_vendor_in_use_cannot_be_deleted(self, client, local_vendor, rice, make_order):
        make_order(local_vendor, [{"item_id": rice.id, "quantity": 1, "rate": 10}])

        response = client.delete(f"/vendor/{local_vendor.id}")
        assert response.status_code == 409

    def test_barcode_lookup(self, client):
        item = _item(client)

        response = client.get("/stock/items/barcode/8901111111111")

        assert response.status_code == 200
        assert response.json()["id"] == item["id"]
        assert client.get("/stock/items/barcode/0000").status_code == 404

    def test_duplicate_barcode_rejected(self, client):
        _item(client)
        response = client.post("/stock/items/", json={"name": "Other", "barcode": "8901111111111"})
        assert response.status_code == 409

    def test_import_items_from_csv(self, client):
        sheet = (
            "name,barcode,gst_rate,hsn_code\n"
            "Sugar 1kg,8902222222222,5,1701\n"
            "Tea 250g,8903333333333,5,0902\n"
            "Bad Rate,8904444444444,7,\n"
        )
        response = client.post(
            "/stock/items/import",
            files={"file": ("items.csv", io.BytesIO(sheet.encode()), "text/csv")},
        )

        assert response.status_code == 200, response.text
        assert response.json()["imported"] == 2
        assert response.json()["skipped"] == 1


@pytest.mark.integration
class TestTaxPreview:

    def test_interstate_vendor_preview(self, client, interstate_vendor):
        # Scenario F
        response = client.post(
            "/tax/preview",
            json={
                "vendor_id": interstate_vendor.id,
                "lines": [{"quantity": 10, "rate": 100, "gst_rate": 18}],
            },
        )

        body = response.json()
        assert response.status_code == 200
        assert body["igst_amount"] == 180
        assert body["cgst_amount"] == 0
        assert body["sgst_amount"] == 0
        assert body["total_amount"] == 1180
        assert body["is_intrastate"] is False

    def test_negative_quantity_is_a_validation_error(self, client):
        response = client.post(
            "/tax/preview",
            json={"lines": [{"quantity": -1, "rate": 100, "gst_rate": 18}]},
        )
        assert response.status_code == 400


@pytest.mark.integration
class TestProcurementFlow:

    def test_order_receive_pay(self, client, interstate_vendor, rice):
        # Scenario F: the same order from another state
        response = client.post(
            "/purchase-orders/",
            json={
                "vendor_id": interstate_vendor.id,
                "lines": [{"item_id": rice.id, "quantity": 10, "rate": 100}],
            },
        )
        assert response.status_code == 200, response.text
        order = response.json()
        assert order["igst_amount"] == 180
        assert order["total_amount"] == 1180
        assert order["status"] == "pending"

        # Hand the order over to receipt entry
        response = client.post(f"/purchase-orders/{order['id']}/receive")
        assert response.status_code == 200
        assert client.get("/handoff/").json()["po_id"] == order["id"]

        draft = client.get("/purchase/draft").json()
        assert draft["po_id"] == order["id"]
        assert draft["lines"][0]["quantity"] == 10
        assert draft["totals"]["igst_amount"] == 180

        # Consumed: a second read gives nothing
        assert client.get("/purchase/draft").json() is None

        # Receive 6 of 10
        response = client.post(
            "/purchase/",
            json={
                "invoice_number": "KA-5521",
                "po_id": order["id"],
                "lines": [{"item_id": rice.id, "quantity": 6, "rate": 100, "expiry_date": "2027-03-31"}],
            },
        )
        assert response.status_code == 200, response.text
        invoice = response.json()
        assert invoice["igst_amount"] == 108
        assert invoice["total_amount"] == 708
        assert invoice["vendor_name"] == "Bengaluru Distributors"
        assert invoice["po_number"] == order["po_number"]

        order = client.get(f"/purchase-orders/{order['id']}").json()
        assert order["status"] == "partial"
        assert order["lines"][0]["pending_quantity"] == 4

        # The next draft only offers what is still outstanding
        client.post(f"/purchase-orders/{order['id']}/receive")
        assert client.get("/purchase/draft").json()["lines"][0]["quantity"] == 4

        # Pay in two parts, then reverse the second
        response = client.post(f"/payments/invoice/{invoice['id']}", json={"amount": 500})
        assert response.status_code == 200, response.text
        second = client.post(f"/payments/invoice/{invoice['id']}", json={"amount": 208}).json()
        assert client.get(f"/purchase/{invoice['id']}").json()["payment_status"] == "paid"

        response = client.delete(f"/payments/{second['id']}")
        assert response.status_code == 200
        invoice = client.get(f"/purchase/{invoice['id']}").json()
        assert invoice["paid_amount"] == 500
        assert invoice["pending_amount"] == 208
        assert invoice["payment_status"] == "partial"

        assert len(client.get(f"/payments/invoice/{invoice['id']}").json()) == 1

    def test_rejections_map_to_status_codes(self, client, local_vendor, rice, oil):
        order = client.post(
            "/purchase-orders/",
            json={"vendor_id": local_vendor.id, "lines": [{"item_id": rice.id, "quantity": 2, "rate": 100}]},
        ).json()

        over = client.post(
            "/purchase/",
            json={"invoice_number": "X1", "po_id": order["id"], "lines": [{"item_id": rice.id, "quantity": 3, "rate": 100}]},
        )
        assert over.status_code == 400

        unmatched = client.post(
            "/purchase/",
            json={"invoice_number": "X1", "po_id": order["id"], "lines": [{"item_id": oil.id, "quantity": 1, "rate": 100}]},
        )
        assert unmatched.status_code == 409

        assert client.post("/payments/invoice/999", json={"amount": 10}).status_code == 404
        assert client.get("/purchase-orders/999").status_code == 404

    def test_cancelled_order_cannot_be_handed_over(self, client, local_vendor, rice):
        order = client.post(
            "/purchase-orders/",
            json={"vendor_id": local_vendor.id, "lines": [{"item_id": rice.id, "quantity": 2, "rate": 100}]},
        ).json()

        assert client.post(f"/purchase-orders/{order['id']}/cancel").json()["status"] == "cancelled"
        assert client.post(f"/purchase-orders/{order['id']}/receive").status_code == 409
        assert client.post(f"/purchase-orders/{order['id']}/cancel").status_code == 409

    def test_list_filters(self, client, local_vendor, interstate_vendor, rice):
        for vendor in (local_vendor, interstate_vendor):
            client.post(
                "/purchase-orders/",
                json={"vendor_id": vendor.id, "lines": [{"item_id": rice.id, "quantity": 1, "rate": 100}]},
            )

        orders = client.get("/purchase-orders/", params={"vendor_id": interstate_vendor.id}).json()
        assert len(orders) == 1
        assert orders[0]["vendor_name"] == "Bengaluru Distributors"
        assert len(client.get("/purchase-orders/", params={"status": "pending"}).json()) == 2


@pytest.mark.integration
def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
