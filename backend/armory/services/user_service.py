# Overview: Read-side queries for users and their issuances.

from __future__ import annotations

from ..extensions import db
from ..models import Issuance, User


def list_users(page: int | None = None, per_page: int | None = None) -> dict:
    """
    All users ordered by signup time, paginated (default page 1, 10 per page).
    """
    per_page = min(max(per_page or 10, 1), 100)
    page = max(page or 1, 1)

    base_query = db.session.query(User).order_by(User.created_at.asc(), User.id.asc())
    total = base_query.count()
    users = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "users": [u.to_dict() for u in users],
        "pagination": {
            "page": page,
            "limit": per_page,
            "total": total,
        },
    }


def list_issuances_for_user(user_id: int) -> list[Issuance]:
    return (
        db.session.query(Issuance)
        .filter(Issuance.user_id == user_id)
        .order_by(Issuance.issued_at.desc(), Issuance.id.desc())
        .all()
    )
