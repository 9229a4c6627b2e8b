from __future__ import annotations

from ..extensions import db
from armory.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Ammunition stock for one caliber.

    Caliber is a grouping key, not an identity: several rows may share a
    caliber (different lots, storage locations). Orders bind to a specific
    row by id at approval time.

    INVARIANT: quantity >= 0, enforced by a CHECK constraint and by the
    conditional decrement in inventory_service.
    """
    __tablename__ = "ammo_inventory"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_ammo_inventory_quantity_nonnegative"),
        db.Index("ix_ammo_inventory_caliber", "caliber"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    caliber = db.Column(db.String(50), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} caliber={self.caliber!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "caliber": self.caliber,
            "quantity": self.quantity,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Issuance(db.Model):
    """
    Stock physically handed to a user.

    Written in the same transaction as the order approval that caused it.
    inventory_item_id and caliber are snapshots, so the record survives
    deletion of the inventory row.
    """
    __tablename__ = "issuances"
    __table_args__ = (
        db.Index("ix_issuances_user_issued", "user_id", "issued_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("ammo_orders.id"), nullable=False, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, nullable=False, index=True)
    caliber = db.Column(db.String(50), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    issued_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("issuance", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "user_id": self.user_id,
            "inventory_item_id": self.inventory_item_id,
            "caliber": self.caliber,
            "quantity": self.quantity,
            "issued_by_user_id": self.issued_by_user_id,
            "issued_at": to_utc_z(self.issued_at),
            # Issuances exist only for approved orders; completed once handed over
            "status": self.order.status if self.order else None,
        }
