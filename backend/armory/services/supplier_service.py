# Overview: Service-layer operations for suppliers and the purchases that stocked inventory.

"""
Suppliers

A supplier is a plain catalogue entry. Purchases are written by
inventory_service.create_item when new stock names its supplier; this module
only reads them back.
"""
from __future__ import annotations

from ..errors import NotFoundError
from ..extensions import db
from ..models import Purchase, Supplier
from ..validation import ModelValidationPolicy, validate_payload
from .concurrency import run_with_retry


SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_info"},
    required_on_create={"name"},
)


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc(), Supplier.id.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def create_supplier(payload: dict) -> Supplier:
    """
    Create a supplier from {name, contact_info?}.

    Raises:
        ValidationError: missing or blank name, unknown field
    """
    fields = validate_payload(
        model=Supplier,
        payload=payload,
        policy=SUPPLIER_POLICY,
        partial=False,
    )

    def _op():
        supplier = Supplier(**fields)
        db.session.add(supplier)
        db.session.commit()
        return supplier

    return run_with_retry(_op)


def list_purchases(supplier_id: int | None = None) -> list[Purchase]:
    """Purchases newest first, optionally for one supplier."""
    query = db.session.query(Purchase)
    if supplier_id is not None:
        get_supplier(supplier_id)
        query = query.filter(Purchase.supplier_id == supplier_id)
    return query.order_by(Purchase.purchased_at.desc(), Purchase.id.desc()).all()
