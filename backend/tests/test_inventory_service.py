"""
Inventory Store tests.

Verifies:
- Rows are created and listed in insertion order
- Partial updates validate fields and keep quantity >= 0
- Decrement is all-or-nothing and never drives stock negative
"""

import pytest

from armory.errors import InsufficientStockError, NotFoundError, ValidationError
from armory.extensions import db
from armory.models import InventoryItem
from armory.services import inventory_service


class TestCreateAndList:

    def test_create_item(self, app):
        item = inventory_service.create_item("  .45 ACP ", 300)
        assert item.id is not None
        assert item.caliber == ".45 ACP"
        assert item.quantity == 300

    @pytest.mark.parametrize("caliber,quantity", [
        ("", 10),
        ("   ", 10),
        (None, 10),
        ("9mm", 0),
        ("9mm", -5),
        ("9mm", "1.5"),
        ("9mm", True),
    ])
    def test_create_rejects_bad_input(self, app, caliber, quantity):
        with pytest.raises(ValidationError):
            inventory_service.create_item(caliber, quantity)
        assert db.session.query(InventoryItem).count() == 0

    def test_list_in_insertion_order(self, app):
        first = inventory_service.create_item("9mm", 100)
        second = inventory_service.create_item(".22 LR", 50)
        third = inventory_service.create_item("9mm", 25)

        assert [i.id for i in inventory_service.list_items()] == [first.id, second.id, third.id]
        assert [i.id for i in inventory_service.list_items(caliber="9mm")] == [first.id, third.id]

    def test_same_caliber_allowed_on_several_rows(self, app):
        inventory_service.create_item("9mm", 100)
        inventory_service.create_item("9mm", 200)

        calibers = inventory_service.available_calibers()
        assert calibers == [{"caliber": "9mm", "quantity": 300, "items": 2}]

    def test_get_missing_item(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.get_item(999)


class TestUpdate:

    def test_partial_update(self, item_9mm):
        updated = inventory_service.update_item(item_9mm.id, {"quantity": 0})
        assert updated.quantity == 0
        assert updated.caliber == "9mm"

        updated = inventory_service.update_item(item_9mm.id, {"caliber": "9mm Luger"})
        assert updated.caliber == "9mm Luger"
        assert updated.quantity == 0

    def test_negative_quantity_rejected(self, item_9mm):
        with pytest.raises(ValidationError):
            inventory_service.update_item(item_9mm.id, {"quantity": -1})

        db.session.expire_all()
        assert db.session.get(InventoryItem, item_9mm.id).quantity == 500

    def test_unknown_field_rejected(self, item_9mm):
        with pytest.raises(ValidationError, match="Field not allowed"):
            inventory_service.update_item(item_9mm.id, {"version_id": 7})

    def test_update_missing_item(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.update_item(123, {"quantity": 5})

    def test_update_bumps_version(self, item_9mm):
        before = item_9mm.version_id
        updated = inventory_service.update_item(item_9mm.id, {"quantity": 450})
        assert updated.version_id == before + 1


class TestDelete:

    def test_delete_item(self, item_9mm):
        item_id = item_9mm.id
        inventory_service.delete_item(item_id)
        assert db.session.get(InventoryItem, item_id) is None

    def test_delete_missing_item(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.delete_item(42)


class TestDecrement:

    def test_decrement_reduces_stock(self, item_9mm):
        assert inventory_service.decrement(item_9mm.id, 120) == 380
        db.session.expire_all()
        assert db.session.get(InventoryItem, item_9mm.id).quantity == 380

    def test_decrement_to_exactly_zero(self, item_9mm):
        assert inventory_service.decrement(item_9mm.id, 500) == 0

    def test_decrement_beyond_stock_changes_nothing(self, item_9mm):
        with pytest.raises(InsufficientStockError) as excinfo:
            inventory_service.decrement(item_9mm.id, 501)

        assert excinfo.value.available == 500
        assert excinfo.value.requested == 501
        db.session.expire_all()
        assert db.session.get(InventoryItem, item_9mm.id).quantity == 500

    @pytest.mark.parametrize("amount", [0, -3])
    def test_decrement_requires_positive_amount(self, item_9mm, amount):
        with pytest.raises(ValidationError):
            inventory_service.decrement(item_9mm.id, amount)

    def test_decrement_missing_item(self, app):
        with pytest.raises(NotFoundError):
            inventory_service.decrement(77, 1)

    def test_repeated_decrements_stop_at_zero(self, app):
        item = inventory_service.create_item("12 Gauge", 10)
        for _ in range(3):
            inventory_service.decrement(item.id, 3)

        with pytest.raises(InsufficientStockError):
            inventory_service.decrement(item.id, 3)
        assert inventory_service.decrement(item.id, 1) == 0
