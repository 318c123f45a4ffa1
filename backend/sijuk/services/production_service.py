"""
Production Service - batch recording with automatic HPP

WHY: Converting material consumption into a per-pack cost is the basis for
every profit figure in the system. A batch snapshots each material's buy
price at production time so later price changes never rewrite history.

Creating a batch, inserting its items and consuming material stock happen in
one database transaction.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import ProductionBatch, ProductionItem, Material
from ..validation import ValidationError, coerce_int, coerce_decimal, MAX_QUANTITY
from sijuk.time_utils import utcnow
from . import costing
from .concurrency import lock_for_update, run_with_retry
from .owner_service import get_owned


class ProductionError(Exception):
    """Raised for production batch errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _normalize_items(items) -> list[tuple[int, Decimal]]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    normalized = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        if "material_id" not in item or "quantity_used" not in item:
            raise ValidationError(f"items[{idx}] requires material_id and quantity_used")
        material_id = coerce_int(item["material_id"], f"items[{idx}].material_id")
        quantity = coerce_decimal(item["quantity_used"], f"items[{idx}].quantity_used", places=3)
        if quantity <= 0:
            raise ValidationError(f"items[{idx}].quantity_used must be > 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"items[{idx}].quantity_used cannot exceed {MAX_QUANTITY}")
        normalized.append((material_id, quantity))
    return normalized


def create_batch(
    *,
    user_id: int,
    quantity_produced,
    items,
    date: datetime | None = None,
    notes: str | None = None,
) -> tuple[ProductionBatch, int]:
    """
    Record a production batch and consume its materials.

    Returns (batch, hpp_per_unit_cents).

    Raises:
        ValidationError: malformed quantities or items
        ProductionError: an item references a material the user doesn't own
    """
    qty_produced = coerce_int(quantity_produced, "quantity_produced")
    if qty_produced < 0:
        raise ValidationError("quantity_produced must be >= 0")
    lines = _normalize_items(items)
    batch_date = date or utcnow()

    def _op():
        material_ids = {material_id for material_id, _ in lines}
        materials = {}
        if material_ids:
            rows = lock_for_update(
                db.session.query(Material).filter(
                    Material.user_id == user_id,
                    Material.id.in_(material_ids),
                )
            ).all()
            materials = {m.id: m for m in rows}

        missing = sorted(material_ids - set(materials))
        if missing:
            raise ProductionError("Material not found", details={"material_ids": missing})

        batch = ProductionBatch(
            user_id=user_id,
            date=batch_date,
            quantity_produced=qty_produced,
            notes=notes,
        )

        total_cost = 0
        for material_id, quantity in lines:
            material = materials[material_id]
            unit_price = material.buy_price_cents
            line_total = costing.line_cost_cents(unit_price, quantity)
            total_cost += line_total

            batch.items.append(ProductionItem(
                material_id=material.id,
                quantity_used=quantity,
                unit_price_cents_at_time=unit_price,
                total_cost_cents=line_total,
            ))

            # Consumption never drives stock negative
            material.stock = max(Decimal("0"), Decimal(material.stock or 0) - quantity)

        batch.total_material_cost_cents = total_cost
        batch.hpp_per_unit_cents = costing.hpp_per_unit_cents(total_cost, qty_produced)

        db.session.add(batch)
        db.session.commit()
        return batch

    batch = run_with_retry(_op)
    current_app.logger.info(
        "Production batch %s recorded: %s units, material cost %s, HPP %s",
        batch.id, batch.quantity_produced, batch.total_material_cost_cents, batch.hpp_per_unit_cents,
    )
    return batch, batch.hpp_per_unit_cents


def list_batches(*, user_id: int) -> dict:
    """Owner's batches, latest production date first."""
    batches = (
        db.session.query(ProductionBatch)
        .filter(ProductionBatch.user_id == user_id)
        .order_by(ProductionBatch.date.desc(), ProductionBatch.id.desc())
        .all()
    )
    return {
        "items": [b.to_dict() for b in batches],
        "count": len(batches),
    }


def get_batch(batch_id: int, *, user_id: int) -> ProductionBatch:
    return get_owned(ProductionBatch, batch_id, user_id, label="Production batch")


def delete_batch(batch_id: int, *, user_id: int) -> None:
    """Delete a batch and its items. Consumed material stock is not restored."""
    batch = get_batch(batch_id, user_id=user_id)
    db.session.delete(batch)
    db.session.commit()


def get_latest_hpp(*, user_id: int) -> int | None:
    """HPP per unit of the most recent batch by production date, or None."""
    latest = (
        db.session.query(ProductionBatch.hpp_per_unit_cents)
        .filter(ProductionBatch.user_id == user_id)
        .order_by(ProductionBatch.date.desc(), ProductionBatch.id.desc())
        .first()
    )
    return latest.hpp_per_unit_cents if latest else None
