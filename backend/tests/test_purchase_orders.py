"""Tests for purchase orders."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.models.order import POStatus, PurchaseOrder
from app.services.purchase_order_service import (
    InvalidStatusTransitionError,
    PurchaseOrderService,
    PurchaseOrderValidationError,
)


class TestPurchaseOrderService:

    def test_create_order_totals(self, db_session, test_supplier, test_item):
        po = PurchaseOrderService(db_session).create_order(
            {"supplier_id": test_supplier.id, "requested_by": "Dr. Patel"},
            [
                {"inventory_item_id": test_item.id, "quantity": 10, "unit_price": "4.50"},
                {"item_description": "Thermometer covers", "quantity": 3, "unit_price": "2.00"},
            ],
        )
        assert po.status == POStatus.PENDING
        assert po.po_number == f"PO-{date.today().year}-0001"
        assert str(po.total_amount) == "51.00"
        assert [str(i.total_price) for i in po.items] == ["45.00", "6.00"]
        assert po.requested_by == "Dr. Patel"

    def test_create_requires_items(self, db_session, test_supplier):
        with pytest.raises(PurchaseOrderValidationError):
            PurchaseOrderService(db_session).create_order({"supplier_id": test_supplier.id}, [])
        assert db_session.query(PurchaseOrder).count() == 0

    def test_create_rejects_zero_quantity(self, db_session, test_supplier):
        with pytest.raises(PurchaseOrderValidationError, match="quantity"):
            PurchaseOrderService(db_session).create_order(
                {"supplier_id": test_supplier.id}, [{"quantity": 0, "unit_price": 1}]
            )

    @pytest.mark.parametrize("path", [
        [POStatus.APPROVED, POStatus.ORDERED, POStatus.RECEIVED],
        [POStatus.CANCELLED],
        [POStatus.APPROVED, POStatus.CANCELLED],
        [POStatus.APPROVED, POStatus.ORDERED, POStatus.CANCELLED],
    ])
    def test_allowed_paths(self, db_session, test_supplier, path):
        service = PurchaseOrderService(db_session)
        po = service.create_order({"supplier_id": test_supplier.id}, [{"quantity": 1, "unit_price": 1}])
        for target in path:
            po = service.transition(po.id, target)
        assert po.status == path[-1]

    @pytest.mark.parametrize("start,target", [
        (POStatus.PENDING, POStatus.ORDERED),
        (POStatus.PENDING, POStatus.RECEIVED),
        (POStatus.RECEIVED, POStatus.PENDING),
        (POStatus.CANCELLED, POStatus.APPROVED),
        (POStatus.ORDERED, POStatus.APPROVED),
    ])
    def test_invalid_transitions(self, db_session, test_supplier, start, target):
        po = PurchaseOrder(po_number="PO-2024-0500", supplier_id=test_supplier.id, status=start)
        db_session.add(po)
        db_session.commit()
        with pytest.raises(InvalidStatusTransitionError):
            PurchaseOrderService(db_session).transition(po.id, target)

    def test_delete_only_pending(self, db_session, test_purchase_order):
        with pytest.raises(PurchaseOrderValidationError, match="pending"):
            PurchaseOrderService(db_session).delete(test_purchase_order.id)


class TestPurchaseOrdersAPI:
    """Test purchase order endpoints."""

    def test_create_and_get(self, client: TestClient, test_supplier, test_item):
        response = client.post(
            "/api/v1/purchase-orders/",
            json={
                "supplier_id": test_supplier.id,
                "expected_delivery_date": "2024-04-01",
                "items": [{"inventory_item_id": test_item.id, "quantity": 12, "unit_price": "4.50"}],
            },
        )
        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "pending"
        assert created["items"][0]["quantity"] == 12

        response = client.get(f"/api/v1/purchase-orders/{created['id']}")
        assert response.status_code == 200
        assert response.json()["po_number"] == created["po_number"]

    def test_create_without_items(self, client: TestClient, test_supplier):
        response = client.post("/api/v1/purchase-orders/", json={"supplier_id": test_supplier.id, "items": []})
        assert response.status_code == 422

    def test_create_unknown_supplier(self, client: TestClient):
        response = client.post(
            "/api/v1/purchase-orders/",
            json={"supplier_id": 999, "items": [{"quantity": 1}]},
        )
        assert response.status_code == 404

    def test_receivable_filter(self, client: TestClient, db_session, test_purchase_order, test_supplier):
        db_session.add(PurchaseOrder(po_number="PO-2024-0002", supplier_id=test_supplier.id, status=POStatus.CANCELLED))
        db_session.add(PurchaseOrder(po_number="PO-2024-0003", supplier_id=test_supplier.id, status=POStatus.RECEIVED))
        db_session.commit()

        response = client.get("/api/v1/purchase-orders/", params={"receivable": "true"})
        assert response.status_code == 200
        assert [po["po_number"] for po in response.json()["items"]] == ["PO-2024-0001"]

        response = client.get("/api/v1/purchase-orders/")
        assert response.json()["total"] == 3

    def test_status_change(self, client: TestClient, test_purchase_order):
        response = client.post(
            f"/api/v1/purchase-orders/{test_purchase_order.id}/status", json={"status": "received"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "received"

        response = client.post(
            f"/api/v1/purchase-orders/{test_purchase_order.id}/status", json={"status": "pending"}
        )
        assert response.status_code == 400

    def test_update_descriptive_fields(self, client: TestClient, test_purchase_order):
        response = client.put(
            f"/api/v1/purchase-orders/{test_purchase_order.id}",
            json={"notes": "Call before delivery", "shipping_method": "Courier"},
        )
        assert response.status_code == 200
        assert response.json()["notes"] == "Call before delivery"
        assert response.json()["status"] == "ordered"

    def test_delete_pending(self, client: TestClient, db_session, test_supplier):
        po = PurchaseOrder(po_number="PO-2024-0009", supplier_id=test_supplier.id)
        db_session.add(po)
        db_session.commit()
        assert client.delete(f"/api/v1/purchase-orders/{po.id}").status_code == 204
        assert db_session.query(PurchaseOrder).count() == 0

    def test_delete_non_pending(self, client: TestClient, test_purchase_order):
        assert client.delete(f"/api/v1/purchase-orders/{test_purchase_order.id}").status_code == 400

    def test_missing(self, client: TestClient):
        assert client.get("/api/v1/purchase-orders/999").status_code == 404
