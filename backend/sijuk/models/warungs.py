from __future__ import annotations

from ..extensions import db
from sijuk.time_utils import to_utc_z


class Warung(db.Model):
    """
    Retail partner holding goods on consignment.

    PRICING SCHEMES:
    - net: the producer bills a fixed net_price_cents per unit sold; the warung
      keeps whatever margin it adds on top.
    - commission: the producer sets selling_price_cents (consumer price) and the
      warung keeps commission_bps of the gross (basis points, 2000 = 20%).

    current_stock is the number of packs left at the warung after the last visit.
    """
    __tablename__ = "warungs"
    __table_args__ = (
        db.Index("ix_warungs_user_id", "user_id"),
        db.Index("ix_warungs_user_name", "user_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.Text, nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    price_scheme = db.Column(db.String(16), nullable=False, default="net")
    net_price_cents = db.Column(db.Integer, nullable=True)
    selling_price_cents = db.Column(db.Integer, nullable=True)
    commission_bps = db.Column(db.Integer, nullable=True)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship(
        "User",
        backref=db.backref("warungs", lazy=True, cascade="all, delete"),
    )

    def __repr__(self) -> str:
        return f"<Warung id={self.id} name={self.name!r} scheme={self.price_scheme}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "price_scheme": self.price_scheme,
            "net_price_cents": self.net_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "commission_bps": self.commission_bps,
            "current_stock": self.current_stock,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Transaction(db.Model):
    """
    One distribution visit to a warung.

    The visit reconciles consigned stock (initial -> remaining), bills what was
    sold and drops off a restock. Scheme, prices and HPP are snapshotted so the
    row stays correct after the warung's terms or production costs change.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_user_id", "user_id"),
        db.Index("ix_transactions_warung_id", "warung_id"),
        db.Index("ix_transactions_user_date", "user_id", "date"),
        db.CheckConstraint("sold >= 0", name="ck_transactions_sold_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    warung_id = db.Column(db.Integer, db.ForeignKey("warungs.id", ondelete="CASCADE"), nullable=False)

    date = db.Column(db.DateTime(timezone=True), nullable=False)

    initial_stock = db.Column(db.Integer, nullable=False)
    remaining_stock = db.Column(db.Integer, nullable=False)
    sold = db.Column(db.Integer, nullable=False)
    restock_amount = db.Column(db.Integer, nullable=False, default=0)

    price_scheme_at_time = db.Column(db.String(16), nullable=False)
    unit_price_cents_at_time = db.Column(db.Integer, nullable=False)
    commission_bps_at_time = db.Column(db.Integer, nullable=True)

    total_bill_cents = db.Column(db.Integer, nullable=False)
    hpp_cents_at_time = db.Column(db.Integer, nullable=True)
    profit_cents = db.Column(db.Integer, nullable=True)

    payment_status = db.Column(db.String(16), nullable=False, default="unpaid", index=True)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    warung = db.relationship(
        "Warung",
        backref=db.backref("transactions", lazy=True, cascade="all, delete"),
    )
    user = db.relationship(
        "User",
        backref=db.backref("transactions", lazy=True, cascade="all, delete"),
    )

    def to_dict(self, include_warung: bool = True) -> dict:
        data = {
            "id": self.id,
            "warung_id": self.warung_id,
            "date": to_utc_z(self.date),
            "initial_stock": self.initial_stock,
            "remaining_stock": self.remaining_stock,
            "sold": self.sold,
            "restock_amount": self.restock_amount,
            "price_scheme_at_time": self.price_scheme_at_time,
            "unit_price_cents_at_time": self.unit_price_cents_at_time,
            "commission_bps_at_time": self.commission_bps_at_time,
            "total_bill_cents": self.total_bill_cents,
            "hpp_cents_at_time": self.hpp_cents_at_time,
            "profit_cents": self.profit_cents,
            "payment_status": self.payment_status,
            "paid_amount_cents": self.paid_amount_cents,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_warung:
            data["warung_name"] = self.warung.name if self.warung else None
        return data
