# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .errors import AuthorizationError, error_response
from .permissions import STAFF_ROLES, has_role
from .services import session_service


AUTH_COOKIE_NAME = "auth_token"


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def get_request_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return request.cookies.get(AUTH_COOKIE_NAME)


def require_auth(f):
    """
    Require authentication.

    Accepts the session token as "Authorization: Bearer <token>" or in the
    auth_token cookie. Sets:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Returns 401 if no token, or the token is invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_request_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*allowed_roles):
    """
    Require the authenticated user to hold one of allowed_roles.

    Must be stacked below @require_auth.
    """
    allowed = frozenset(allowed_roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not has_role(g.current_user, allowed):
                return error_response(AuthorizationError(
                    f"Access denied. Required role: {' or '.join(sorted(allowed))}"
                ))

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_staff = require_role(*STAFF_ROLES)
