# Overview: Error taxonomy shared by services and routes.

"""
Every failure a service can report is an ArmoryError subclass carrying the
HTTP status and machine-readable code the routes render. Services raise;
routes translate with error_response().
"""
from __future__ import annotations

from flask import current_app, jsonify

from .extensions import db


class ArmoryError(Exception):
    """Base class for domain errors."""
    status_code = 400
    code = "error"
    retryable = False

    def to_dict(self) -> dict:
        body = {"error": str(self), "code": self.code}
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationError(ArmoryError, ValueError):
    """400-level input problem."""
    status_code = 400
    code = "validation_error"


class AuthorizationError(ArmoryError):
    """Authenticated caller lacks the required role."""
    status_code = 403
    code = "forbidden"


class NotFoundError(ArmoryError, LookupError):
    """Referenced entity does not exist."""
    status_code = 404
    code = "not_found"


class InvalidTransitionError(ArmoryError):
    """Order state machine violation."""
    status_code = 409
    code = "invalid_transition"


class ConflictError(ArmoryError):
    """
    409-level conflict.

    Raised as retryable when a unit of work loses a concurrent-update race
    after its automatic retry; raised with retryable=False for business
    conflicts such as a duplicate email.
    """
    status_code = 409
    code = "conflict"

    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable


class InsufficientStockError(ArmoryError):
    """A decrement would drive an inventory quantity below zero."""
    status_code = 422
    code = "insufficient_stock"

    def __init__(self, item_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for inventory item {item_id}. "
            f"Available: {available}, requested: {requested}"
        )
        self.item_id = item_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["available"] = self.available
        body["requested"] = self.requested
        return body


def error_response(exc: ArmoryError):
    """Render a domain error as a (json, status) route response."""
    return jsonify(exc.to_dict()), exc.status_code


def rollback_response(exc: ArmoryError):
    """Roll back the request's session and render a domain error."""
    db.session.rollback()
    return error_response(exc)


def internal_error(message: str):
    """Roll back, log the active exception, and return a generic 500."""
    db.session.rollback()
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500
