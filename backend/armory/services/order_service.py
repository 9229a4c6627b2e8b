# Overview: Service-layer operations for the order ledger; encapsulates business logic and database work.

"""
Order Ledger

LIFECYCLE:
    pending  -> approved   (approval_service.approve_order: issues stock)
    pending  -> rejected   [terminal]
    approved -> completed  [terminal]

No other transition is valid. Status only moves forward; rejected and
completed orders refuse every further change.

This module owns the transition table. It never touches inventory and never
checks roles: who may call what is decided by the routes.
"""
from __future__ import annotations

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryItem, Order, User
from ..models.orders import (
    ORDER_STATUS_APPROVED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_REJECTED,
    ORDER_STATUSES,
)
from ..time_utils import utcnow
from ..validation import coerce_int, normalize_caliber, require_positive_quantity
from .concurrency import lock_for_update, run_with_retry


ALLOWED_TRANSITIONS = {
    ORDER_STATUS_PENDING: {ORDER_STATUS_APPROVED, ORDER_STATUS_REJECTED},
    ORDER_STATUS_APPROVED: {ORDER_STATUS_COMPLETED},
    ORDER_STATUS_REJECTED: set(),
    ORDER_STATUS_COMPLETED: set(),
}

TERMINAL_STATUSES = {ORDER_STATUS_REJECTED, ORDER_STATUS_COMPLETED}

# Timestamp column stamped when an order enters each status
_STATUS_TIMESTAMPS = {
    ORDER_STATUS_APPROVED: "approved_at",
    ORDER_STATUS_REJECTED: "rejected_at",
    ORDER_STATUS_COMPLETED: "completed_at",
}


def check_transition(order: Order, new_status: str) -> None:
    """
    Raise unless order may move to new_status.

    Raises:
        ValidationError: new_status is not a known status
        InvalidTransitionError: order is terminal or the move is not forward
    """
    if new_status not in ORDER_STATUSES:
        raise ValidationError(
            f"Unknown order status '{new_status}'. Expected one of: {', '.join(ORDER_STATUSES)}"
        )
    if order.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(f"Order {order.id} is already {order.status}")
    if new_status not in ALLOWED_TRANSITIONS[order.status]:
        raise InvalidTransitionError(
            f"Cannot move order {order.id} from {order.status} to {new_status}"
        )


def transition(order: Order, new_status: str, actor_user_id: int | None = None) -> Order:
    """Validate and apply a status change in the caller's transaction. Does not commit."""
    check_transition(order, new_status)
    order.status = new_status
    setattr(order, _STATUS_TIMESTAMPS[new_status], utcnow())
    if actor_user_id is not None:
        order.decided_by_user_id = actor_user_id
    db.session.flush()
    return order


def _require_user(user_id: int) -> None:
    if db.session.get(User, user_id) is None:
        raise NotFoundError(f"User {user_id} not found")


def place_order(user_id: int, caliber: str, quantity) -> Order:
    """
    Place a pending order for any caliber.

    Raises:
        ValidationError: blank caliber or quantity < 1
        NotFoundError: unknown user
    """
    caliber = normalize_caliber(caliber)
    quantity = require_positive_quantity(quantity)

    def _op():
        _require_user(user_id)
        order = Order(
            user_id=user_id,
            caliber=caliber,
            quantity=quantity,
            status=ORDER_STATUS_PENDING,
        )
        db.session.add(order)
        db.session.commit()
        return order

    return run_with_retry(_op)


def place_order_from_stock(user_id: int, item_id: int, quantity) -> Order:
    """
    Place a pending order against a specific inventory row.

    The caliber is copied from the row and the row id is kept as the
    approval hint. Availability is not reserved here; it is checked when the
    order is approved.
    """
    item_id = coerce_int("item_id", item_id)
    quantity = require_positive_quantity(quantity)

    def _op():
        _require_user(user_id)
        item = db.session.get(InventoryItem, item_id)
        if item is None:
            raise NotFoundError(f"Inventory item {item_id} not found")

        order = Order(
            user_id=user_id,
            caliber=item.caliber,
            quantity=quantity,
            status=ORDER_STATUS_PENDING,
            inventory_item_id=item.id,
        )
        db.session.add(order)
        db.session.commit()
        return order

    return run_with_retry(_op)


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def list_orders_for_user(user_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_all_orders(
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    All orders, newest first, with optional status filter and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Order)
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status '{status}'")
        base_query = base_query.filter(Order.status == status)
    base_query = base_query.order_by(Order.created_at.desc(), Order.id.desc())

    # If no pagination requested, return all items
    if page is None:
        orders = base_query.all()
        return {
            "items": [o.to_dict() for o in orders],
            "count": len(orders),
        }

    per_page = min(max(per_page or 20, 1), 100)  # Default 20, clamped to 1..100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    orders = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [o.to_dict() for o in orders],
        "count": len(orders),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def set_status(order_id: int, new_status: str, actor_user_id: int | None = None) -> Order:
    """
    Move an order to new_status and commit.

    This is the bare state-machine primitive: it has no inventory effect.
    Approvals must go through approval_service.approve_order, which pairs the
    status change with the stock decrement.

    Raises:
        NotFoundError: no such order
        ValidationError: unknown status
        InvalidTransitionError: terminal order or not a forward move
    """
    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        transition(order, new_status, actor_user_id)
        db.session.commit()
        return order

    return run_with_retry(_op)
