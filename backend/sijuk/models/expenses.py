from __future__ import annotations

from ..extensions import db
from sijuk.time_utils import to_utc_z


class Expense(db.Model):
    """Operating expense (fuel, meals, parking, other) deducted from gross profit."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_user_id", "user_id"),
        db.Index("ix_expenses_user_date", "user_id", "date"),
        db.Index("ix_expenses_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    category = db.Column(db.String(16), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship(
        "User",
        backref=db.backref("expenses", lazy=True, cascade="all, delete"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "date": to_utc_z(self.date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
