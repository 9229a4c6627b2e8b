# backend/armory/routes/suppliers.py
"""
Supplier and purchase routes.

SECURITY: moderator or admin only.
"""
from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_staff
from ..errors import ArmoryError, internal_error, rollback_response
from ..services import supplier_service


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_staff
def list_suppliers_route():
    suppliers = supplier_service.list_suppliers()
    return jsonify({"suppliers": [s.to_dict() for s in suppliers], "count": len(suppliers)}), 200


@suppliers_bp.post("")
@require_auth
@require_staff
def create_supplier_route():
    """
    Create a supplier.

    Request body:
    {
        "name": str,
        "contact_info": str (optional, or "contactInfo")
    }
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload", "code": "validation_error"}), 400
    payload = dict(payload)
    if "contactInfo" in payload and "contact_info" not in payload:
        payload["contact_info"] = payload.pop("contactInfo")

    try:
        supplier = supplier_service.create_supplier(payload)
        return jsonify({"supplier": supplier.to_dict(), "message": "Supplier created"}), 201

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to create supplier")


@suppliers_bp.get("/purchases")
@require_auth
@require_staff
def list_purchases_route():
    """
    Purchases newest first.

    Query params:
    - supplier_id: int (optional)
    """
    try:
        purchases = supplier_service.list_purchases(
            supplier_id=request.args.get("supplier_id", type=int),
        )
        return jsonify({"purchases": [p.to_dict() for p in purchases], "count": len(purchases)}), 200
    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to list purchases")
