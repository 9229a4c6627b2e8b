# Overview: Service-layer operations for ammunition stock; encapsulates business logic and database work.

# backend/armory/services/inventory_service.py
"""
Inventory Store

Stock is a mutable quantity per InventoryItem row (not ledger-derived).

Invariants:
- quantity >= 0 at all times.
- decrement() is a single conditional UPDATE (compare-and-swap): it either
  subtracts the full amount from a row that holds at least that much, or
  changes nothing. Two concurrent decrements can never both pass the check
  against the same units.

apply_decrement() only flushes, so the approval workflow can run it inside
its own transaction. Every other public function here is its own unit of
work and commits.
"""
from __future__ import annotations

import sqlalchemy as sa

from ..errors import InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import InventoryItem, Purchase, Supplier
from ..validation import (
    ModelValidationPolicy,
    coerce_int,
    enforce_rules_inventory_item,
    normalize_caliber,
    require_positive_quantity,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry


INVENTORY_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"caliber", "quantity"},
    required_on_create={"caliber", "quantity"},
)


def list_items(caliber: str | None = None) -> list[InventoryItem]:
    """All inventory rows in insertion order, optionally for one caliber."""
    query = db.session.query(InventoryItem)
    if caliber:
        query = query.filter(InventoryItem.caliber == caliber.strip())
    return query.order_by(InventoryItem.id.asc()).all()


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError(f"Inventory item {item_id} not found")
    return item


def available_calibers() -> list[dict]:
    """Total stock per caliber, for the order form."""
    rows = (
        db.session.query(
            InventoryItem.caliber,
            sa.func.sum(InventoryItem.quantity).label("quantity"),
            sa.func.count(InventoryItem.id).label("items"),
        )
        .group_by(InventoryItem.caliber)
        .order_by(InventoryItem.caliber.asc())
        .all()
    )
    return [
        {"caliber": caliber, "quantity": int(quantity or 0), "items": items}
        for caliber, quantity, items in rows
    ]


def create_item(
    caliber: str,
    quantity,
    supplier_id: int | None = None,
    actor_user_id: int | None = None,
) -> InventoryItem:
    """
    Create a stock row.

    When supplier_id is given the stock is recorded as a Purchase from that
    supplier, committed together with the row.

    Raises:
        ValidationError: blank caliber, quantity < 1, non-integer supplier_id
        NotFoundError: unknown supplier
    """
    caliber = normalize_caliber(caliber)
    quantity = require_positive_quantity(quantity)
    if supplier_id is not None:
        supplier_id = coerce_int("supplier_id", supplier_id)

    def _op():
        if supplier_id is not None and db.session.get(Supplier, supplier_id) is None:
            raise NotFoundError(f"Supplier {supplier_id} not found")

        item = InventoryItem(caliber=caliber, quantity=quantity)
        db.session.add(item)

        if supplier_id is not None:
            db.session.flush()
            db.session.add(Purchase(
                supplier_id=supplier_id,
                inventory_item_id=item.id,
                caliber=caliber,
                quantity=quantity,
                purchased_by_user_id=actor_user_id,
            ))

        db.session.commit()
        return item

    return run_with_retry(_op)


def update_item(item_id: int, patch: dict) -> InventoryItem:
    """
    Apply a partial update ({caliber?, quantity?}).

    Raises:
        NotFoundError: no such item
        ValidationError: unknown field, blank caliber, negative quantity
    """
    patch = validate_payload(
        model=InventoryItem,
        payload=patch,
        policy=INVENTORY_ITEM_POLICY,
        partial=True,
    )
    enforce_rules_inventory_item(patch)

    def _op():
        item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")

        for key, value in patch.items():
            setattr(item, key, value)

        # version_id_col turns a lost update into StaleDataError
        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_item(item_id: int) -> None:
    """
    Delete a stock row.

    Orders and issuances keep the id as a plain value, so history is kept.
    """
    def _op():
        item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        db.session.delete(item)
        db.session.commit()

    run_with_retry(_op)


def apply_decrement(item_id: int, amount: int) -> int:
    """
    Subtract amount from an item inside the caller's transaction.

    Returns the new quantity. Does not commit.

    Raises:
        ValidationError: amount < 1
        NotFoundError: no such item
        InsufficientStockError: amount exceeds the current quantity
    """
    amount = require_positive_quantity(amount, key="amount")

    result = db.session.execute(
        sa.update(InventoryItem)
        .where(InventoryItem.id == item_id, InventoryItem.quantity >= amount)
        .values(
            quantity=InventoryItem.quantity - amount,
            version_id=InventoryItem.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )

    item = db.session.get(InventoryItem, item_id, populate_existing=True)
    if result.rowcount == 0:
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")
        raise InsufficientStockError(item_id, amount, item.quantity)

    return item.quantity


def decrement(item_id: int, amount) -> int:
    """Atomically reduce an item's quantity and commit. Returns the new quantity."""
    def _op():
        remaining = apply_decrement(item_id, amount)
        db.session.commit()
        return remaining

    return run_with_retry(_op)
