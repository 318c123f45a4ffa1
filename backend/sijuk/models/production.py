from __future__ import annotations

from ..extensions import db
from sijuk.time_utils import to_utc_z
from .materials import quantity_str


class ProductionBatch(db.Model):
    """
    One production run. Costs are snapshotted at creation time so later
    material price changes never rewrite historical HPP.
    """
    __tablename__ = "production_batches"
    __table_args__ = (
        db.Index("ix_production_batches_user_id", "user_id"),
        db.Index("ix_production_batches_user_date", "user_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    total_material_cost_cents = db.Column(db.Integer, nullable=False)
    quantity_produced = db.Column(db.Integer, nullable=False)  # finished packs
    hpp_per_unit_cents = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    items = db.relationship(
        "ProductionItem",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="ProductionItem.id",
    )
    user = db.relationship(
        "User",
        backref=db.backref("production_batches", lazy=True, cascade="all, delete"),
    )

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "date": to_utc_z(self.date),
            "total_material_cost_cents": self.total_material_cost_cents,
            "quantity_produced": self.quantity_produced,
            "hpp_per_unit_cents": self.hpp_per_unit_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class ProductionItem(db.Model):
    __tablename__ = "production_items"
    __table_args__ = (
        db.Index("ix_production_items_batch_id", "batch_id"),
        db.Index("ix_production_items_material_id", "material_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(
        db.Integer, db.ForeignKey("production_batches.id", ondelete="CASCADE"), nullable=False
    )
    # RESTRICT: a material that appears in any batch cannot be deleted
    material_id = db.Column(
        db.Integer, db.ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )

    quantity_used = db.Column(db.Numeric(12, 3), nullable=False)
    unit_price_cents_at_time = db.Column(db.Integer, nullable=False)
    total_cost_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    batch = db.relationship("ProductionBatch", back_populates="items")
    material = db.relationship("Material")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "material_id": self.material_id,
            "material_name": self.material.name if self.material else None,
            "material_unit": self.material.unit if self.material else None,
            "quantity_used": quantity_str(self.quantity_used),
            "unit_price_cents_at_time": self.unit_price_cents_at_time,
            "total_cost_cents": self.total_cost_cents,
            "created_at": to_utc_z(self.created_at),
        }
