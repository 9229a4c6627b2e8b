# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Every action must be attributable. Uses bcrypt for password hashing.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Session tokens managed separately (see session_service.py)
- Signup always creates the 'user' role; elevated roles come from the CLI
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, ValidationError
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_USER, ROLES
from ..time_utils import utcnow
from ..validation import validate_signup


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise.
    bcrypt.checkpw() is timing-safe.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def create_user(
    email: str,
    password: str,
    name: str,
    pin_no: str,
    role: str = ROLE_USER,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: malformed email, short password, bad PIN, unknown role
        ConflictError: email or PIN already registered (not retryable)
    """
    fields = validate_signup({"email": email, "password": password, "name": name, "pin_no": pin_no})

    if role not in ROLES:
        raise ValidationError(f"Unknown role '{role}'. Expected one of: {', '.join(ROLES)}")

    existing = db.session.query(User).filter(
        db.or_(User.email == fields["email"], User.pin_no == fields["pin_no"])
    ).first()
    if existing:
        if existing.email == fields["email"]:
            raise ConflictError("User with this email already exists", retryable=False)
        raise ConflictError("PIN number is already in use", retryable=False)

    user = User(
        email=fields["email"],
        name=fields["name"],
        pin_no=fields["pin_no"],
        password_hash=hash_password(fields["password"]),
        role=role,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email/PIN
        db.session.rollback()
        raise ConflictError("User with this email or PIN already exists", retryable=False)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
