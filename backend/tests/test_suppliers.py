"""
Supplier and purchase tests.

New stock that names its supplier is recorded as a Purchase in the same
commit; a bad supplier leaves no stock row behind.
"""

import pytest

from armory.errors import NotFoundError, ValidationError
from armory.extensions import db
from armory.models import InventoryItem, Purchase, Supplier
from armory.services import inventory_service, supplier_service


@pytest.fixture
def supplier(app):
    return supplier_service.create_supplier({"name": "Federal Cartridge", "contact_info": "sales@federal.example"})


class TestSupplierService:

    def test_create_and_list_by_name(self, app):
        supplier_service.create_supplier({"name": "Winchester"})
        supplier_service.create_supplier({"name": "Aguila"})

        names = [s.name for s in supplier_service.list_suppliers()]
        assert names == ["Aguila", "Winchester"]

    @pytest.mark.parametrize("payload", [
        {},
        {"name": "   "},
        {"name": None},
        {"name": "Hornady", "rating": 5},
    ])
    def test_invalid_supplier(self, app, payload):
        with pytest.raises(ValidationError):
            supplier_service.create_supplier(payload)
        assert db.session.query(Supplier).count() == 0

    def test_get_missing_supplier(self, app):
        with pytest.raises(NotFoundError):
            supplier_service.get_supplier(999)


class TestStockPurchase:

    def test_create_item_records_purchase(self, supplier, moderator):
        item = inventory_service.create_item("9mm", 1000, supplier_id=supplier.id, actor_user_id=moderator.id)

        purchases = supplier_service.list_purchases(supplier.id)
        assert len(purchases) == 1
        purchase = purchases[0]
        assert purchase.inventory_item_id == item.id
        assert purchase.caliber == "9mm"
        assert purchase.quantity == 1000
        assert purchase.purchased_by_user_id == moderator.id
        assert purchase.to_dict()["supplier_name"] == "Federal Cartridge"

    def test_create_item_without_supplier_records_nothing(self, app):
        inventory_service.create_item("9mm", 100)
        assert db.session.query(Purchase).count() == 0

    def test_unknown_supplier_creates_no_stock(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.create_item("9mm", 100, supplier_id=42)
        assert db.session.query(InventoryItem).count() == 0
        assert db.session.query(Purchase).count() == 0

    def test_non_integer_supplier(self, supplier):
        with pytest.raises(ValidationError):
            inventory_service.create_item("9mm", 100, supplier_id="federal")
        assert db.session.query(InventoryItem).count() == 0

    def test_purchase_outlives_stock_row(self, supplier):
        item = inventory_service.create_item(".308 Win", 200, supplier_id=supplier.id)
        inventory_service.delete_item(item.id)

        purchases = supplier_service.list_purchases()
        assert [p.caliber for p in purchases] == [".308 Win"]

    def test_list_purchases_filters_by_supplier(self, supplier):
        other = supplier_service.create_supplier({"name": "Sellier & Bellot"})
        inventory_service.create_item("9mm", 100, supplier_id=supplier.id)
        inventory_service.create_item("7.62x39", 300, supplier_id=other.id)

        assert [p.caliber for p in supplier_service.list_purchases(other.id)] == ["7.62x39"]
        assert len(supplier_service.list_purchases()) == 2

        with pytest.raises(NotFoundError):
            supplier_service.list_purchases(999)


class TestSupplierRoutes:

    def test_staff_creates_supplier(self, client, moderator_headers):
        resp = client.post(
            "/api/suppliers",
            json={"name": "PMC", "contactInfo": "orders@pmc.example"},
            headers=moderator_headers,
        )
        assert resp.status_code == 201
        assert resp.json["supplier"]["name"] == "PMC"
        assert resp.json["supplier"]["contact_info"] == "orders@pmc.example"

        resp = client.get("/api/suppliers", headers=moderator_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1

    def test_blank_name_rejected(self, client, admin_headers):
        resp = client.post("/api/suppliers", json={"name": ""}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "validation_error"

    def test_non_object_body_rejected(self, client, admin_headers):
        resp = client.post("/api/suppliers", json=["PMC"], headers=admin_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/suppliers"),
        ("post", "/api/suppliers"),
        ("get", "/api/suppliers/purchases"),
    ])
    def test_regular_user_forbidden(self, client, user_headers, method, path):
        resp = getattr(client, method)(path, json={"name": "PMC"}, headers=user_headers)
        assert resp.status_code == 403

    def test_stock_with_supplier_records_purchase(self, client, moderator, moderator_headers, supplier):
        resp = client.post(
            "/api/inventory",
            json={"caliber": "12 Gauge", "quantity": 250, "supplierId": supplier.id},
            headers=moderator_headers,
        )
        assert resp.status_code == 201
        item_id = resp.json["item"]["id"]

        resp = client.get(
            "/api/suppliers/purchases",
            query_string={"supplier_id": supplier.id},
            headers=moderator_headers,
        )
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        purchase = resp.json["purchases"][0]
        assert purchase["inventory_item_id"] == item_id
        assert purchase["quantity"] == 250
        assert purchase["purchased_by_user_id"] == moderator.id

    def test_stock_with_unknown_supplier(self, client, moderator_headers):
        resp = client.post(
            "/api/inventory",
            json={"caliber": "12 Gauge", "quantity": 250, "supplier_id": 77},
            headers=moderator_headers,
        )
        assert resp.status_code == 404
        assert db.session.query(InventoryItem).count() == 0

    def test_purchases_for_unknown_supplier(self, client, moderator_headers):
        resp = client.get("/api/suppliers/purchases?supplier_id=5", headers=moderator_headers)
        assert resp.status_code == 404
