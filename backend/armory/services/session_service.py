# Overview: Bearer-token sessions backing the Identity module.

"""
Session tokens

A login hands the client a random 64-hex-character token; only its SHA-256
digest is stored, so a leaked database does not leak usable tokens.

Lifetime rules:
- absolute: a session dies SESSION_ABSOLUTE_TIMEOUT after it was issued
- idle: a session unused for SESSION_IDLE_TIMEOUT is revoked on next sight
- a deactivated account revokes every session presented for it
- logout revokes the presented token
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(days=7)
SESSION_IDLE_TIMEOUT = timedelta(hours=24)


@dataclass
class SessionContext:
    """Authenticated identity handed to the access layer."""
    user: User
    session: SessionToken

    @property
    def role(self) -> str:
        return self.user.role


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Digest stored in session_tokens.token_hash. Tokens are high-entropy, so no salt."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(
            SessionToken.token_hash == hash_token(token),
            SessionToken.is_revoked.is_(False),
        )
        .first()
    )


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for user_id.

    Returns (stored_session, token). The token is only ever returned here;
    callers must hand it to the client immediately.
    """
    if db.session.get(User, user_id) is None:
        raise ValueError(f"User {user_id} not found")

    token = generate_token()
    issued_at = utcnow()

    record = SessionToken(
        user_id=user_id,
        token_hash=hash_token(token),
        created_at=issued_at,
        last_used_at=issued_at,
        expires_at=issued_at + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(record)
    db.session.commit()

    return record, token


def _revoke(record: SessionToken, reason: str) -> None:
    record.is_revoked = True
    record.revoked_at = utcnow()
    record.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a presented token to its user.

    None means "treat the request as anonymous": unknown, revoked, expired or
    idle tokens, and tokens of deactivated accounts. A valid token has its
    last_used_at bumped.
    """
    record = _live_session(token)
    if record is None:
        return None

    now = utcnow()
    if now >= record.expires_at:
        return None

    if now - record.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(record, "Idle timeout")
        return None

    user = record.user
    if user is None or not user.is_active:
        _revoke(record, "User account deactivated")
        return None

    record.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=record)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke a live session. False when the token is unknown or already revoked."""
    record = _live_session(token)
    if record is None:
        return False

    _revoke(record, reason)
    return True
