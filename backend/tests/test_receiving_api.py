"""Stock receiving endpoint tests."""

from fastapi.testclient import TestClient

from app.models.order import POStatus, PurchaseOrder
from app.models.receiving import StockReceipt
from app.services.stock_receiving_service import StockReceivingService


class TestDiscrepancyCheck:

    def test_flags_and_message(self, client: TestClient):
        response = client.post(
            "/api/v1/stock-receipts/discrepancy-check",
            json={"items": [
                {"quantity_received": 10, "quantity_ordered": 10},
                {"quantity_received": 8, "quantity_ordered": 10},
                {"quantity_received": 5},
            ]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["flags"] == [False, True, False]
        assert data["discrepancy_count"] == 1
        assert data["message"] == "1 item with quantity discrepancies"

    def test_nothing_persisted(self, client: TestClient, db_session):
        client.post("/api/v1/stock-receipts/discrepancy-check", json={"items": [{"quantity_received": 1, "quantity_ordered": 2}]})
        assert db_session.query(StockReceipt).count() == 0


class TestCreateReceiptAPI:

    def test_create_against_po(self, client: TestClient, db_session, test_supplier, test_purchase_order, test_item):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "purchase_order_id": test_purchase_order.id,
                "supplier_id": test_supplier.id,
                "receipt_date": "2024-03-05",
                "received_by": "Nurse Kim",
                "items": [
                    {"quantity_received": 18, "condition": "good"},
                    {"quantity_received": 10},
                ],
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["discrepancy_count"] == 1
        assert data["receipt"]["discrepancy_count"] == 1
        assert [i["has_discrepancy"] for i in data["receipt"]["items"]] == [True, False]
        assert len(data["stock_updates"]) == 2
        assert data["errors"] == []
        assert "with discrepancies noted" in data["notifications"][0]

        db_session.refresh(test_purchase_order)
        assert test_purchase_order.status == POStatus.RECEIVED
        db_session.refresh(test_item)
        assert test_item.current_stock == 20

    def test_empty_items_422(self, client: TestClient, db_session, test_supplier):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={"supplier_id": test_supplier.id, "receipt_date": "2024-03-05", "items": []},
        )
        assert response.status_code == 422
        assert "No items to receive" in response.json()["detail"]
        assert db_session.query(StockReceipt).count() == 0

    def test_negative_quantity_rejected(self, client: TestClient, test_supplier, test_item):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": test_supplier.id,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": test_item.id, "quantity_received": -2}],
            },
        )
        assert response.status_code == 422

    def test_unknown_supplier_404(self, client: TestClient, test_item):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": 999,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": test_item.id, "quantity_received": 1}],
            },
        )
        assert response.status_code == 404

    def test_unknown_inventory_item_404(self, client: TestClient, db_session, test_supplier):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": test_supplier.id,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": 424242, "quantity_received": 1}],
            },
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Inventory item(s) 424242 not found"
        assert db_session.query(StockReceipt).count() == 0

    def test_supplier_mismatch_422(self, client: TestClient, db_session, test_purchase_order):
        other_id = client.post("/api/v1/suppliers/", json={"name": "Other Medical"}).json()["id"]
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "purchase_order_id": test_purchase_order.id,
                "supplier_id": other_id,
                "receipt_date": "2024-03-05",
                "items": [{"quantity_received": 20}],
            },
        )
        assert response.status_code == 422
        assert "does not match purchase order" in response.json()["detail"]
        assert db_session.query(StockReceipt).count() == 0

    def test_persistence_failure_500(self, client: TestClient, db_session, test_supplier, test_item, monkeypatch):
        def failing_insert(self, receipt, rows):
            raise RuntimeError("write failed")

        monkeypatch.setattr(StockReceivingService, "_insert_items", failing_insert)
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": test_supplier.id,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": test_item.id, "quantity_received": 1}],
            },
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to create stock receipt items"
        assert db_session.query(StockReceipt).count() == 0

    def test_auto_reorder_reported(self, client: TestClient, db_session, test_supplier, test_item, auto_reorder_on):
        response = client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": test_supplier.id,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": test_item.id, "quantity_received": 1}],
            },
        )
        assert response.status_code == 201
        created = response.json()["purchase_orders_created"]
        assert len(created) == 1
        assert created[0]["quantity"] == 47
        assert db_session.query(PurchaseOrder).count() == 1


class TestReceiptQueriesAPI:

    def _create(self, client, supplier_id, item_id, qty=4):
        return client.post(
            "/api/v1/stock-receipts/",
            json={
                "supplier_id": supplier_id,
                "receipt_date": "2024-03-05",
                "items": [{"inventory_item_id": item_id, "quantity_received": qty}],
            },
        ).json()["receipt"]

    def test_list_and_get(self, client: TestClient, test_supplier, test_item):
        receipt = self._create(client, test_supplier.id, test_item.id)
        response = client.get("/api/v1/stock-receipts/", params={"supplier_id": test_supplier.id})
        assert response.status_code == 200
        assert response.json()["total"] == 1

        response = client.get(f"/api/v1/stock-receipts/{receipt['id']}")
        assert response.status_code == 200
        assert response.json()["receipt_number"] == receipt["receipt_number"]

    def test_get_missing(self, client: TestClient):
        assert client.get("/api/v1/stock-receipts/999").status_code == 404

    def test_edit_receipt(self, client: TestClient, db_session, test_supplier, test_item):
        receipt = self._create(client, test_supplier.id, test_item.id)
        response = client.put(
            f"/api/v1/stock-receipts/{receipt['id']}",
            json={"notes": "corrected", "items": [{"quantity_received": 6}]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["receipt"]["items"][0]["quantity_received"] == 6
        assert data["receipt"]["items"][0]["has_discrepancy"] is True
        assert data["receipt"]["notes"] == "corrected"
        db_session.refresh(test_item)
        assert test_item.current_stock == 6

    def test_prefill(self, client: TestClient, test_purchase_order):
        response = client.get(f"/api/v1/stock-receipts/prefill/{test_purchase_order.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["po_number"] == "PO-2024-0001"
        assert [line["quantity_received"] for line in data["items"]] == [20, 10]

    def test_prefill_missing_po(self, client: TestClient):
        assert client.get("/api/v1/stock-receipts/prefill/999").status_code == 404
