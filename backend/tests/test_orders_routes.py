"""
Order and approval API tests.

Verifies:
- Users place and list their own orders
- Staff approve, reject and complete through the API
- Domain errors map to stable status codes and machine codes
"""

from armory.extensions import db
from armory.models import InventoryItem, Issuance, Order


def _quantity(item_id):
    db.session.expire_all()
    return db.session.get(InventoryItem, item_id).quantity


class TestPlaceOrder:

    def test_place_order(self, client, user_headers, regular_user):
        resp = client.post("/api/orders", json={"caliber": "9mm", "quantity": 100}, headers=user_headers)
        assert resp.status_code == 201
        order = resp.json["order"]
        assert order["status"] == "pending"
        assert order["user_id"] == regular_user.id
        assert order["user_name"] == "Range Shooter"

    def test_place_order_invalid_quantity(self, client, user_headers):
        resp = client.post("/api/orders", json={"caliber": "9mm", "quantity": 0}, headers=user_headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"

    def test_place_order_from_stock(self, client, user_headers, item_9mm):
        resp = client.post("/api/orders/stock", json={"ammoId": item_9mm.id, "quantity": 25}, headers=user_headers)
        assert resp.status_code == 201
        assert resp.json["order"]["inventory_item_id"] == item_9mm.id
        assert resp.json["order"]["caliber"] == "9mm"

    def test_place_order_from_stock_requires_item(self, client, user_headers):
        resp = client.post("/api/orders/stock", json={"quantity": 25}, headers=user_headers)
        assert resp.status_code == 400

    def test_place_order_from_missing_stock(self, client, user_headers):
        resp = client.post("/api/orders/stock", json={"item_id": 999, "quantity": 25}, headers=user_headers)
        assert resp.status_code == 404
        assert resp.json["code"] == "not_found"


class TestListOrders:

    def test_mine_only_returns_own_orders(self, client, user_headers, other_user_headers):
        client.post("/api/orders", json={"caliber": "9mm", "quantity": 1}, headers=user_headers)
        client.post("/api/orders", json={"caliber": ".22 LR", "quantity": 2}, headers=user_headers)
        client.post("/api/orders", json={"caliber": "9mm", "quantity": 3}, headers=other_user_headers)

        resp = client.get("/api/orders/mine", headers=user_headers)
        assert resp.status_code == 200
        assert [o["quantity"] for o in resp.json["orders"]] == [2, 1]

    def test_staff_lists_all_orders(self, client, moderator_headers, pending_order, other_user):
        db.session.add(Order(user_id=other_user.id, caliber=".45 ACP", quantity=5, status="pending"))
        db.session.commit()

        resp = client.get("/api/orders", headers=moderator_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 2

    def test_staff_paginates(self, client, admin_headers, pending_order):
        resp = client.get("/api/orders?page=1&per_page=1&status=pending", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["pagination"]["total"] == 1

    def test_owner_can_read_order(self, client, user_headers, pending_order):
        resp = client.get(f"/api/orders/{pending_order.id}", headers=user_headers)
        assert resp.status_code == 200

    def test_other_user_cannot_read_order(self, client, other_user_headers, pending_order):
        resp = client.get(f"/api/orders/{pending_order.id}", headers=other_user_headers)
        assert resp.status_code == 403
        assert resp.json["code"] == "forbidden"


class TestApproveRoute:

    def test_approve_decrements_stock(self, client, moderator_headers, moderator, pending_order, item_9mm):
        resp = client.post(
            f"/api/orders/{pending_order.id}/approve",
            json={"ammoId": item_9mm.id, "issuedQuantity": 150},
            headers=moderator_headers,
        )
        assert resp.status_code == 200
        order = resp.json["order"]
        assert order["status"] == "approved"
        assert order["issued_quantity"] == 150
        assert order["decided_by_user_id"] == moderator.id
        assert _quantity(item_9mm.id) == 350

    def test_approve_insufficient_stock(self, client, admin_headers, pending_order):
        item = InventoryItem(caliber="9mm", quantity=100)
        db.session.add(item)
        db.session.commit()

        resp = client.post(
            f"/api/orders/{pending_order.id}/approve",
            json={"item_id": item.id, "issued_quantity": 200},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        assert resp.json["code"] == "insufficient_stock"
        assert resp.json["available"] == 100
        assert resp.json["requested"] == 200
        assert _quantity(item.id) == 100

    def test_approve_twice_conflicts(self, client, moderator_headers, pending_order, item_9mm):
        url = f"/api/orders/{pending_order.id}/approve"
        body = {"item_id": item_9mm.id}
        assert client.post(url, json=body, headers=moderator_headers).status_code == 200

        resp = client.post(url, json=body, headers=moderator_headers)
        assert resp.status_code == 409
        assert resp.json["code"] == "invalid_transition"
        assert _quantity(item_9mm.id) == 300

    def test_approve_issued_above_requested(self, client, moderator_headers, pending_order, item_9mm):
        resp = client.post(
            f"/api/orders/{pending_order.id}/approve",
            json={"item_id": item_9mm.id, "issued_quantity": 201},
            headers=moderator_headers,
        )
        assert resp.status_code == 400
        assert _quantity(item_9mm.id) == 500

    def test_approve_missing_order(self, client, moderator_headers, item_9mm):
        resp = client.post("/api/orders/999/approve", json={"item_id": item_9mm.id}, headers=moderator_headers)
        assert resp.status_code == 404


class TestRejectAndCompleteRoutes:

    def test_reject(self, client, moderator_headers, pending_order, item_9mm):
        resp = client.post(f"/api/orders/{pending_order.id}/reject", headers=moderator_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "rejected"
        assert _quantity(item_9mm.id) == 500

    def test_complete_pending_conflicts(self, client, moderator_headers, pending_order):
        resp = client.post(f"/api/orders/{pending_order.id}/complete", headers=moderator_headers)
        assert resp.status_code == 409

    def test_full_lifecycle(self, client, admin_headers, user_headers, pending_order, item_9mm):
        client.post(f"/api/orders/{pending_order.id}/approve", json={"item_id": item_9mm.id}, headers=admin_headers)
        resp = client.post(f"/api/orders/{pending_order.id}/complete", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "completed"

        resp = client.get("/api/users/issuances", headers=user_headers)
        assert resp.status_code == 200
        issuances = resp.json["issuances"]
        assert len(issuances) == 1
        assert issuances[0]["quantity"] == 200
        assert issuances[0]["status"] == "completed"


class TestPatchStatus:

    def test_patch_approve(self, client, moderator_headers, pending_order, item_9mm):
        resp = client.patch(
            f"/api/orders/{pending_order.id}",
            json={"status": "approved", "issuedQuantity": 40, "ammoId": item_9mm.id},
            headers=moderator_headers,
        )
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "approved"
        assert _quantity(item_9mm.id) == 460
        assert db.session.query(Issuance).count() == 1

    def test_patch_requires_status(self, client, moderator_headers, pending_order):
        resp = client.patch(f"/api/orders/{pending_order.id}", json={}, headers=moderator_headers)
        assert resp.status_code == 400

    def test_patch_back_to_pending(self, client, moderator_headers, pending_order):
        resp = client.patch(f"/api/orders/{pending_order.id}", json={"status": "pending"}, headers=moderator_headers)
        assert resp.status_code == 400
