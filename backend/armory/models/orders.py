from __future__ import annotations

from ..extensions import db
from armory.time_utils import to_utc_z


ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_APPROVED = "approved"
ORDER_STATUS_REJECTED = "rejected"
ORDER_STATUS_COMPLETED = "completed"

ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_APPROVED,
    ORDER_STATUS_REJECTED,
    ORDER_STATUS_COMPLETED,
)


class Order(db.Model):
    """
    A user's request for ammunition.

    LIFECYCLE:
    1. pending: placed by the user
    2. approved: stock issued (inventory decremented, Issuance written)
    3. rejected: declined before issuance [terminal]
    4. completed: issued stock handed over [terminal]

    Orders are never deleted. user_id is immutable after creation.
    inventory_item_id is a plain column rather than a foreign key: before
    approval it is the item the user ordered from (optional hint), after
    approval it is the item that was actually decremented.
    """
    __tablename__ = "ammo_orders"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_ammo_orders_quantity_positive"),
        db.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'completed')",
            name="ck_ammo_orders_status",
        ),
        db.Index("ix_ammo_orders_user_created", "user_id", "created_at"),
        db.Index("ix_ammo_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    caliber = db.Column(db.String(50), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_PENDING)

    issued_quantity = db.Column(db.Integer, nullable=True)
    inventory_item_id = db.Column(db.Integer, nullable=True, index=True)

    decided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", foreign_keys=[user_id], backref=db.backref("orders", lazy=True))
    decided_by = db.relationship("User", foreign_keys=[decided_by_user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} user_id={self.user_id} caliber={self.caliber!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "caliber": self.caliber,
            "quantity": self.quantity,
            "status": self.status,
            "issued_quantity": self.issued_quantity,
            "inventory_item_id": self.inventory_item_id,
            "decided_by_user_id": self.decided_by_user_id,
            "approved_at": to_utc_z(self.approved_at),
            "rejected_at": to_utc_z(self.rejected_at),
            "completed_at": to_utc_z(self.completed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
