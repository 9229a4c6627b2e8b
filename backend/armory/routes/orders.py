# Overview: Flask API routes for orders and the approval workflow; parses input and returns JSON responses.

# backend/armory/routes/orders.py
"""
Order API routes.

SECURITY: All routes require authentication.
- Placing and listing one's own orders: any role
- Listing all orders, approve/reject/complete: moderator or admin

Request bodies accept snake_case keys and the camelCase keys used by the
web client (issuedQuantity, ammoId).
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_staff
from ..errors import ArmoryError, AuthorizationError, internal_error, rollback_response
from ..permissions import is_staff
from ..services import approval_service, order_service


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _first(data: dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@orders_bp.post("")
@require_auth
def place_order_route():
    """
    Place an order for any caliber.

    Request body:
    {
        "caliber": str,
        "quantity": int
    }

    Returns:
        201: Order placed (status: pending)
        400: Invalid caliber or quantity
    """
    data = request.get_json(silent=True) or {}

    try:
        order = order_service.place_order(
            user_id=g.current_user.id,
            caliber=data.get("caliber"),
            quantity=data.get("quantity"),
        )
        return jsonify({"order": order.to_dict(), "message": "Order placed"}), 201

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to place order")


@orders_bp.post("/stock")
@require_auth
def place_order_from_stock_route():
    """
    Place an order against an existing inventory row.

    Request body:
    {
        "item_id": int,   (or "ammoId")
        "quantity": int
    }

    Returns:
        201: Order placed (status: pending)
        400: Invalid quantity
        404: Inventory row not found
    """
    data = request.get_json(silent=True) or {}

    try:
        item_id = _first(data, "item_id", "ammoId")
        if item_id is None:
            return jsonify({"error": "item_id is required", "code": "validation_error"}), 400

        order = order_service.place_order_from_stock(
            user_id=g.current_user.id,
            item_id=item_id,
            quantity=data.get("quantity"),
        )
        return jsonify({"order": order.to_dict(), "message": "Order placed"}), 201

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to place order from stock")


@orders_bp.get("/mine")
@require_auth
def list_my_orders_route():
    """List the caller's own orders, newest first."""
    orders = order_service.list_orders_for_user(g.current_user.id)
    return jsonify({"orders": [o.to_dict() for o in orders]}), 200


@orders_bp.get("")
@require_auth
@require_staff
def list_all_orders_route():
    """
    List all orders (moderator/admin).

    Query params:
    - status: str (optional) - pending, approved, rejected or completed
    - page: int (optional) - page number (1-indexed). If omitted, returns all orders.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        result = order_service.list_all_orders(
            status=request.args.get("status"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
        return jsonify(result), 200
    except ArmoryError as e:
        return rollback_response(e)


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    """Fetch one order. Users may only read their own orders."""
    try:
        order = order_service.get_order(order_id)
        if order.user_id != g.current_user.id and not is_staff(g.current_user):
            raise AuthorizationError("You can only view your own orders")
        return jsonify({"order": order.to_dict()}), 200
    except ArmoryError as e:
        return rollback_response(e)


@orders_bp.post("/<int:order_id>/approve")
@require_auth
@require_staff
def approve_order_route(order_id: int):
    """
    Approve a pending order and issue stock (moderator/admin).

    Request body (all optional):
    {
        "item_id": int,          (or "ammoId") inventory row to draw from
        "issued_quantity": int   (or "issuedQuantity") defaults to the requested quantity
    }

    Returns:
        200: Order approved, stock decremented
        400: Invalid issued quantity
        404: Order or inventory row not found
        409: Order is not pending, or a concurrent update won (retryable)
        422: Insufficient stock
    """
    data = request.get_json(silent=True) or {}

    try:
        order = approval_service.approve_order(
            order_id=order_id,
            item_id=_first(data, "item_id", "ammoId"),
            issued_quantity=_first(data, "issued_quantity", "issuedQuantity"),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"order": order.to_dict(), "message": "Order approved"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to approve order")


@orders_bp.post("/<int:order_id>/reject")
@require_auth
@require_staff
def reject_order_route(order_id: int):
    """
    Reject a pending order (moderator/admin). No inventory effect.

    Returns:
        200: Order rejected
        404: Order not found
        409: Order is not pending
    """
    try:
        order = approval_service.reject_order(order_id, actor_user_id=g.current_user.id)
        return jsonify({"order": order.to_dict(), "message": "Order rejected"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to reject order")


@orders_bp.post("/<int:order_id>/complete")
@require_auth
@require_staff
def complete_order_route(order_id: int):
    """
    Complete an approved order (moderator/admin). No inventory effect.

    Returns:
        200: Order completed
        404: Order not found
        409: Order is not approved
    """
    try:
        order = approval_service.complete_order(order_id, actor_user_id=g.current_user.id)
        return jsonify({"order": order.to_dict(), "message": "Order completed"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to complete order")


@orders_bp.patch("/<int:order_id>")
@require_auth
@require_staff
def update_order_status_route(order_id: int):
    """
    Change an order's status (moderator/admin).

    Request body:
    {
        "status": "approved" | "rejected" | "completed",
        "issuedQuantity": int (optional, approvals only),
        "ammoId": int (optional, approvals only)
    }
    """
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status:
        return jsonify({"error": "status is required", "code": "validation_error"}), 400

    try:
        order = approval_service.update_order_status(
            order_id=order_id,
            status=str(status).strip().lower(),
            issued_quantity=_first(data, "issued_quantity", "issuedQuantity"),
            item_id=_first(data, "item_id", "ammoId"),
            actor_user_id=g.current_user.id,
        )
        return jsonify({"order": order.to_dict(), "message": f"Order {order.status}"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to update order status")
