# Overview: Service-layer operations for order approval; couples order status to stock issuance.

"""
Approval Workflow

approve_order() is the one operation that changes an order and inventory
together. Inside a single transaction it:
1. loads the order and requires status == pending
2. resolves the inventory row (explicit id, the order's stored hint, or the
   legacy caliber match)
3. validates the issued quantity (1 <= issued <= requested)
4. decrements stock with a conditional UPDATE
5. marks the order approved and writes the Issuance record

Any failure rolls the whole transaction back: the order stays pending and
stock is unchanged. Concurrent-update conflicts are retried once and then
surface as ConflictError.

reject_order() and complete_order() are status-only changes.
"""
from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryItem, Issuance, Order
from ..models.orders import (
    ORDER_STATUS_APPROVED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_REJECTED,
)
from ..validation import coerce_int
from . import inventory_service, order_service
from .concurrency import lock_for_update, run_with_retry


def _load_item(item_id: int) -> InventoryItem:
    item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
    if item is None:
        raise NotFoundError(f"Inventory item {item_id} not found")
    return item


def _caliber_candidates(order: Order) -> list[InventoryItem]:
    """Rows of the order's caliber, oldest first, for approvals that name no row."""
    candidates = (
        db.session.query(InventoryItem)
        .filter(InventoryItem.caliber == order.caliber)
        .order_by(InventoryItem.id.asc())
        .all()
    )
    if not candidates:
        raise NotFoundError(f"No inventory found for caliber '{order.caliber}'")
    return candidates


def _pick_by_stock(candidates: list[InventoryItem], issued_quantity: int) -> InventoryItem:
    """
    The oldest row holding enough stock, else the fullest one so the stock
    check reports the real shortfall.
    """
    for candidate in candidates:
        if candidate.quantity >= issued_quantity:
            return candidate
    return max(candidates, key=lambda c: c.quantity)


def _issued_quantity(order: Order, issued_quantity) -> int:
    if issued_quantity is None:
        return order.quantity
    value = coerce_int("issued_quantity", issued_quantity)
    if value < 1:
        raise ValidationError("issued_quantity must be >= 1")
    if value > order.quantity:
        raise ValidationError(
            f"issued_quantity ({value}) cannot exceed the requested quantity ({order.quantity})"
        )
    return value


def approve_order(
    order_id: int,
    item_id: int | None = None,
    issued_quantity: int | None = None,
    actor_user_id: int | None = None,
) -> Order:
    """
    Approve a pending order and issue stock for it.

    Args:
        order_id: Order to approve
        item_id: Inventory row to draw from (None: stored hint, then caliber match)
        issued_quantity: Units to issue (None: the requested quantity)
        actor_user_id: Moderator/admin performing the approval

    Returns:
        Order: The approved order

    Raises:
        NotFoundError: order or inventory row absent
        InvalidTransitionError: order is not pending
        ValidationError: issued_quantity < 1 or above the requested quantity
        InsufficientStockError: not enough stock on the chosen row
        ConflictError: lost a concurrent-update race twice
    """
    if item_id is not None:
        item_id = coerce_int("item_id", item_id)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        order_service.check_transition(order, ORDER_STATUS_APPROVED)

        # Explicit item_id wins, then the row the order was placed against
        target_id = item_id if item_id is not None else order.inventory_item_id
        if target_id is not None:
            item = _load_item(target_id)
            quantity = _issued_quantity(order, issued_quantity)
        else:
            candidates = _caliber_candidates(order)
            quantity = _issued_quantity(order, issued_quantity)
            item = _pick_by_stock(candidates, quantity)

        remaining = inventory_service.apply_decrement(item.id, quantity)

        order_service.transition(order, ORDER_STATUS_APPROVED, actor_user_id)
        order.issued_quantity = quantity
        order.inventory_item_id = item.id

        db.session.add(Issuance(
            order_id=order.id,
            user_id=order.user_id,
            inventory_item_id=item.id,
            caliber=item.caliber,
            quantity=quantity,
            issued_by_user_id=actor_user_id,
        ))

        db.session.commit()

        current_app.logger.info(
            "Order %s approved: issued %d x %s from item %s (remaining %d)",
            order.id, quantity, item.caliber, item.id, remaining,
        )
        return order

    return run_with_retry(_op)


def reject_order(order_id: int, actor_user_id: int | None = None) -> Order:
    """Reject a pending order. No inventory effect."""
    order = order_service.set_status(order_id, ORDER_STATUS_REJECTED, actor_user_id)
    current_app.logger.info("Order %s rejected", order.id)
    return order


def complete_order(order_id: int, actor_user_id: int | None = None) -> Order:
    """
    Complete an approved order.

    No inventory effect: stock left inventory when the order was approved.
    """
    order = order_service.set_status(order_id, ORDER_STATUS_COMPLETED, actor_user_id)
    current_app.logger.info("Order %s completed", order.id)
    return order


def update_order_status(
    order_id: int,
    status: str,
    issued_quantity: int | None = None,
    item_id: int | None = None,
    actor_user_id: int | None = None,
) -> Order:
    """
    Route a requested status change to the matching workflow operation.

    Raises:
        ValidationError: status missing, unknown, or 'pending'
        plus whatever the chosen operation raises
    """
    if status == ORDER_STATUS_APPROVED:
        return approve_order(order_id, item_id=item_id, issued_quantity=issued_quantity,
                             actor_user_id=actor_user_id)
    if status == ORDER_STATUS_REJECTED:
        return reject_order(order_id, actor_user_id=actor_user_id)
    if status == ORDER_STATUS_COMPLETED:
        return complete_order(order_id, actor_user_id=actor_user_id)
    if status == ORDER_STATUS_PENDING:
        raise ValidationError("Orders cannot be moved back to pending")
    raise ValidationError(
        f"Unknown order status '{status}'. Expected approved, rejected or completed"
    )
