# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/armory/routes/auth.py
"""
Authentication API routes

- Self-service signup always creates the 'user' role
- Login returns a bearer token and also sets it as an HTTP-only cookie
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import AUTH_COOKIE_NAME, get_request_token
from ..errors import ArmoryError, internal_error, rollback_response
from ..services import auth_service
from ..services import session_service
from ..services.session_service import SESSION_ABSOLUTE_TIMEOUT


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _with_session_cookie(response, token: str):
    response.set_cookie(
        AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=not (current_app.debug or current_app.testing),
        samesite="Lax",
        max_age=int(SESSION_ABSOLUTE_TIMEOUT.total_seconds()),
        path="/",
    )
    return response


@auth_bp.post("/signup")
def signup_route():
    """
    Register a new user account.

    Request body:
    {
        "email": str,
        "password": str (6+ chars),
        "name": str,
        "pinNo": str (1-10 chars, unique)
    }

    Returns:
        201: User created, session started
        400: Invalid input
        409: Email or PIN already registered
    """
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            pin_no=data.get("pinNo") or data.get("pin_no"),
        )
        _session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        response = jsonify({
            "user": user.to_dict(),
            "token": token,
            "message": "User created successfully",
        })
        response.status_code = 201
        return _with_session_cookie(response, token)

    except ArmoryError as e:
        return rollback_response(e)
    except Exception:
        return internal_error("Failed to sign up user")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header (or the auth_token
    cookie) for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid email or password"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        response = jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful",
        })
        return _with_session_cookie(response, token)

    except Exception:
        return internal_error("Failed to login user")


@auth_bp.post("/logout")
def logout_route():
    """Revoke the caller's session token and clear the cookie."""
    token = get_request_token()
    if not token:
        return jsonify({"error": "No session token provided"}), 401

    try:
        revoked = session_service.revoke_session(token)
        response = jsonify({"message": "Logout successful" if revoked else "Session already ended"})
        response.delete_cookie(AUTH_COOKIE_NAME, path="/")
        return response
    except Exception:
        return internal_error("Failed to logout user")
