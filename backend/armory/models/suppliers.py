from __future__ import annotations

from ..extensions import db
from armory.time_utils import to_utc_z


class Supplier(db.Model):
    """A vendor that stock rows can be bought from."""
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact_info = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_info": self.contact_info,
            "created_at": to_utc_z(self.created_at),
        }


class Purchase(db.Model):
    """
    Stock bought from a supplier.

    Written in the same commit as the inventory row it stocked.
    inventory_item_id and caliber are snapshots, so the record survives
    deletion of the inventory row.
    """
    __tablename__ = "purchases"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchases_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, nullable=False, index=True)
    caliber = db.Column(db.String(50), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    purchased_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    purchased_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier", backref=db.backref("purchases", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "inventory_item_id": self.inventory_item_id,
            "caliber": self.caliber,
            "quantity": self.quantity,
            "purchased_by_user_id": self.purchased_by_user_id,
            "purchased_at": to_utc_z(self.purchased_at),
        }
