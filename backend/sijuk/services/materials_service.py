# backend/sijuk/services/materials_service.py
"""
Raw material (bahan baku) service.

All operations are owner-scoped: a material id that belongs to another user
behaves exactly like a missing one.
"""
from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Material, ProductionItem
from ..validation import ConflictError, ValidationError, coerce_decimal, MAX_QUANTITY
from .owner_service import get_owned

MATERIAL_MUTABLE_FIELDS = {"name", "unit", "buy_price_cents", "stock"}


def apply_material_patch(m: Material, patch: dict) -> None:
    for k, v in patch.items():
        if k not in MATERIAL_MUTABLE_FIELDS:
            continue
        setattr(m, k, v)


def list_materials(*, user_id: int) -> dict:
    """Owner's materials, newest first."""
    materials = (
        db.session.query(Material)
        .filter(Material.user_id == user_id)
        .order_by(Material.created_at.desc(), Material.id.desc())
        .all()
    )
    return {
        "items": [m.to_dict() for m in materials],
        "count": len(materials),
    }


def get_material(material_id: int, *, user_id: int) -> Material:
    return get_owned(Material, material_id, user_id, label="Material")


def create_material(*, patch: dict, user_id: int) -> Material:
    material = Material(user_id=user_id, stock=Decimal("0"))
    apply_material_patch(material, patch)
    if material.stock is None:
        material.stock = Decimal("0")

    db.session.add(material)
    db.session.commit()
    return material


def update_material(material_id: int, *, patch: dict, user_id: int) -> Material:
    material = get_material(material_id, user_id=user_id)
    apply_material_patch(material, patch)
    db.session.commit()
    return material


def delete_material(material_id: int, *, user_id: int) -> None:
    """
    Delete a material.

    Raises ConflictError if any production batch consumed it: batches keep a
    reference to the material for their cost breakdown.
    """
    material = get_material(material_id, user_id=user_id)

    in_use = db.session.query(ProductionItem.id).filter_by(material_id=material.id).first()
    if in_use is not None:
        raise ConflictError("Material is used by a production batch and cannot be deleted")

    db.session.delete(material)
    db.session.commit()


def add_stock(material_id: int, amount, *, user_id: int) -> Material:
    """Record incoming stock (a purchase) for a material."""
    qty = coerce_decimal(amount, "amount", places=3)
    if qty <= 0:
        raise ValidationError("amount must be > 0")

    material = get_owned(Material, material_id, user_id, label="Material", for_update=True)

    new_stock = Decimal(material.stock or 0) + qty
    if new_stock > MAX_QUANTITY:
        raise ValidationError(f"stock cannot exceed {MAX_QUANTITY}")

    material.stock = new_stock
    db.session.commit()
    return material
