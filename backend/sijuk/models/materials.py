from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from sijuk.time_utils import to_utc_z


def quantity_str(value: Decimal | None) -> str | None:
    """Serialize a fixed-point quantity without float rounding."""
    if value is None:
        return None
    return str(value)


class Material(db.Model):
    """
    Raw material (bahan baku) bought by the owner and consumed by production.

    buy_price_cents is the price per one ``unit``; stock is measured in that unit
    with three decimal places (e.g. 2.500 kg).
    """
    __tablename__ = "materials"
    __table_args__ = (
        db.Index("ix_materials_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    unit = db.Column(db.String(16), nullable=False)

    # Authoritative storage in cents
    buy_price_cents = db.Column(db.Integer, nullable=False)
    stock = db.Column(db.Numeric(12, 3), nullable=False, default=Decimal("0"))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship(
        "User",
        backref=db.backref("materials", lazy=True, cascade="all, delete"),
    )

    def __repr__(self) -> str:
        return f"<Material id={self.id} name={self.name!r} unit={self.unit}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "buy_price_cents": self.buy_price_cents,
            "stock": quantity_str(self.stock),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
