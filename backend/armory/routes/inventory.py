# backend/armory/routes/inventory.py
"""
Inventory management routes.

SECURITY: All routes require authentication.
- View operations: any role
- Create, update and delete: moderator or admin
"""
from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_staff
from ..errors import ArmoryError, internal_error, rollback_response
from ..models import InventoryItem
from ..services import inventory_service
from ..services.inventory_service import INVENTORY_ITEM_POLICY
from ..validation import validate_payload


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    """
    List stock rows in insertion order.

    Query params:
    - caliber: str (optional) - only rows of this caliber
    """
    items = inventory_service.list_items(caliber=request.args.get("caliber"))
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)}), 200


@inventory_bp.get("/calibers")
@require_auth
def list_calibers_route():
    """Total stock per caliber."""
    return jsonify({"calibers": inventory_service.available_calibers()}), 200


@inventory_bp.get("/<int:item_id>")
@require_auth
def get_inventory_item_route(item_id: int):
    try:
        return jsonify({"item": inventory_service.get_item(item_id).to_dict()}), 200
    except ArmoryError as e:
        return rollback_response(e)


@inventory_bp.post("")
@require_auth
@require_staff
def create_inventory_item_route():
    """
    Create a stock row (moderator/admin).

    Request body:
    {
        "caliber": str,
        "quantity": int (>= 1),
        "supplier_id": int (optional, or "supplierId") records a purchase
    }
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload", "code": "validation_error"}), 400
    payload = dict(payload)
    supplier_id = payload.pop("supplier_id", None)
    camel_supplier_id = payload.pop("supplierId", None)
    if supplier_id is None:
        supplier_id = camel_supplier_id

    try:
        patch = validate_payload(
            model=InventoryItem,
            payload=payload,
            policy=INVENTORY_ITEM_POLICY,
            partial=False,
        )
        item = inventory_service.create_item(
            caliber=patch["caliber"],
            quantity=patch["quantity"],
            supplier_id=supplier_id,
            actor_user_id=g.current_user.id,
        )
        return jsonify({"item": item.to_dict(), "message": "Inventory item created"}), 201

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to create inventory item")


@inventory_bp.patch("/<int:item_id>")
@require_auth
@require_staff
def update_inventory_item_route(item_id: int):
    """
    Update a stock row's caliber and/or quantity (moderator/admin).

    Quantity may be set to any value >= 0.
    """
    payload = request.get_json(silent=True) or {}

    try:
        item = inventory_service.update_item(item_id, payload)
        return jsonify({"item": item.to_dict(), "message": "Inventory item updated"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to update inventory item")


@inventory_bp.delete("/<int:item_id>")
@require_auth
@require_staff
def delete_inventory_item_route(item_id: int):
    """Delete a stock row (moderator/admin)."""
    try:
        inventory_service.delete_item(item_id)
        return jsonify({"ok": True, "message": "Inventory item deleted"}), 200

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to delete inventory item")
