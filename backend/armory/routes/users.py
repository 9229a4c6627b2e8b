# Overview: Flask API routes for user accounts and their issuances.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_staff
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/me")
@require_auth
def me_route():
    """Current user information."""
    return jsonify(g.current_user.to_dict()), 200


@users_bp.get("")
@require_auth
@require_staff
def list_users_route():
    """
    Paginated list of all users (moderator/admin).

    Query params:
    - page: int (default 1)
    - limit: int (default 10, max 100)
    """
    result = user_service.list_users(
        page=request.args.get("page", type=int),
        per_page=request.args.get("limit", type=int),
    )
    return jsonify(result), 200


@users_bp.get("/issuances")
@require_auth
def my_issuances_route():
    """Stock issued to the caller, newest first."""
    issuances = user_service.list_issuances_for_user(g.current_user.id)
    return jsonify({"issuances": [i.to_dict() for i in issuances]}), 200
