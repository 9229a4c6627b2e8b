"""
Role definitions for the access layer.

Roles are a flat set: user < moderator < admin. Every capability check in
the application goes through has_role(); services never check roles.
"""
from .models.auth import ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER


# Roles that may manage inventory and decide on orders
STAFF_ROLES = frozenset({ROLE_MODERATOR, ROLE_ADMIN})


def has_role(user, allowed_roles) -> bool:
    """True when the user is active and holds one of allowed_roles."""
    return user is not None and bool(user.is_active) and user.role in allowed_roles


def is_staff(user) -> bool:
    return has_role(user, STAFF_ROLES)


__all__ = [
    "ROLE_USER",
    "ROLE_MODERATOR",
    "ROLE_ADMIN",
    "STAFF_ROLES",
    "has_role",
    "is_staff",
]
