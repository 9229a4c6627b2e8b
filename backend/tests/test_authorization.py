"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Regular users are denied staff operations (403)
- Moderators and admins share staff powers
- Deactivated accounts lose access
"""

import pytest

from armory.extensions import db
from armory.permissions import has_role, is_staff, STAFF_ROLES


STAFF_ENDPOINTS = [
    ("GET", "/api/orders"),
    ("POST", "/api/orders/1/approve"),
    ("POST", "/api/orders/1/reject"),
    ("POST", "/api/orders/1/complete"),
    ("PATCH", "/api/orders/1"),
    ("POST", "/api/inventory"),
    ("PATCH", "/api/inventory/1"),
    ("DELETE", "/api/inventory/1"),
    ("GET", "/api/users"),
    ("GET", "/api/suppliers"),
    ("POST", "/api/suppliers"),
    ("GET", "/api/suppliers/purchases"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        STAFF_ENDPOINTS + [
            ("POST", "/api/orders"),
            ("POST", "/api/orders/stock"),
            ("GET", "/api/orders/mine"),
            ("GET", "/api/orders/1"),
            ("GET", "/api/inventory"),
            ("GET", "/api/inventory/calibers"),
            ("GET", "/api/users/me"),
            ("GET", "/api/users/issuances"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = client.open(path, method=method, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_invalid_token(self, client):
        resp = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_health_is_public(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["database"]["status"] == "healthy"


# =============================================================================
# REGULAR USER DENIED STAFF OPERATIONS (403)
# =============================================================================


class TestUserDeniedStaffOperations:

    @pytest.mark.parametrize("method,path", STAFF_ENDPOINTS)
    def test_forbidden(self, client, user_headers, method, path):
        resp = client.open(path, method=method, json={"status": "approved"}, headers=user_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        assert resp.json["code"] == "forbidden"

    def test_denied_approval_leaves_stock(self, client, user_headers, pending_order, item_9mm):
        resp = client.post(
            f"/api/orders/{pending_order.id}/approve",
            json={"item_id": item_9mm.id},
            headers=user_headers,
        )
        assert resp.status_code == 403
        db.session.expire_all()
        assert item_9mm.quantity == 500
        assert pending_order.status == "pending"


# =============================================================================
# STAFF ROLES
# =============================================================================


class TestStaffAccess:

    @pytest.mark.parametrize("headers_fixture", ["moderator_headers", "admin_headers"])
    def test_staff_can_list_orders_and_users(self, client, request, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        assert client.get("/api/orders", headers=headers).status_code == 200
        assert client.get("/api/users", headers=headers).status_code == 200

    def test_role_predicate(self, regular_user, moderator, admin):
        assert not is_staff(regular_user)
        assert is_staff(moderator)
        assert is_staff(admin)
        assert has_role(admin, {"admin"})
        assert not has_role(moderator, {"admin"})
        assert has_role(regular_user, {"user"})

    def test_inactive_staff_loses_role(self, moderator):
        moderator.is_active = False
        db.session.commit()
        assert not has_role(moderator, STAFF_ROLES)

    def test_deactivated_account_rejected(self, client, moderator, moderator_headers):
        moderator.is_active = False
        db.session.commit()

        resp = client.get("/api/orders", headers=moderator_headers)
        assert resp.status_code == 401
