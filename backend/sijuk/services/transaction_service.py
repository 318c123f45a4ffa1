"""
Distribution Transaction Service - per-visit consignment settlement

WHY: Each visit to a warung reconciles what is left on the shelf against
what was there after the previous visit. The difference is what sold, and
that is what the warung is billed for.

VISIT FLOW:
1. initial_stock = warung.current_stock (left behind on the previous visit)
2. sold = initial_stock - remaining_stock (must be >= 0)
3. bill sold units under the warung's pricing scheme
4. snapshot the latest batch HPP and compute profit
5. derive payment status from the amount paid on the spot
6. warung.current_stock = remaining_stock + restock_amount
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Transaction, Warung
from ..validation import ValidationError, MAX_PRICE_CENTS, coerce_int
from sijuk.time_utils import utcnow, to_utc_z
from . import costing
from .concurrency import lock_for_update, run_with_retry
from .owner_service import get_owned
from .production_service import get_latest_hpp


class TransactionError(Exception):
    """Raised for distribution visit errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _non_negative_int(value, field: str) -> int:
    number = coerce_int(value, field)
    if number < 0:
        raise ValidationError(f"{field} must be >= 0")
    return number


def _paid_amount(value) -> int:
    amount = _non_negative_int(value, "paid_amount_cents")
    if amount > MAX_PRICE_CENTS:
        raise ValidationError(f"paid_amount_cents cannot exceed {MAX_PRICE_CENTS}")
    return amount


def create_transaction(
    *,
    user_id: int,
    warung_id,
    remaining_stock,
    restock_amount=0,
    paid_amount_cents=0,
    notes: str | None = None,
    date: datetime | None = None,
) -> tuple[Transaction, dict]:
    """
    Record a distribution visit.

    Returns (transaction, calculations) where calculations summarises the
    settlement for display: stock figures, bill, HPP snapshot, profit and the
    per-unit margin with a low-margin flag.

    Raises:
        ValidationError: malformed numbers
        NotFoundError: warung missing or owned by someone else
        TransactionError: inactive warung or remaining stock above initial stock
    """
    warung_id = coerce_int(warung_id, "warung_id")
    remaining = _non_negative_int(remaining_stock, "remaining_stock")
    restock = _non_negative_int(restock_amount if restock_amount is not None else 0, "restock_amount")
    paid = _paid_amount(paid_amount_cents if paid_amount_cents is not None else 0)
    visit_date = date or utcnow()

    def _op():
        warung = get_owned(Warung, warung_id, user_id, label="Warung", for_update=True)
        if not warung.is_active:
            raise TransactionError("Warung is inactive")

        initial = warung.current_stock
        try:
            sold = costing.sold_units(initial, remaining)
        except costing.CostingError:
            raise TransactionError(
                "Remaining stock cannot exceed initial stock",
                details={"initial_stock": initial, "remaining_stock": remaining},
            )

        bill = costing.settlement(
            warung.price_scheme,
            sold,
            net_price_cents=warung.net_price_cents,
            selling_price_cents=warung.selling_price_cents,
            commission_bps=warung.commission_bps,
        )

        hpp = get_latest_hpp(user_id=user_id) or 0
        profit = costing.profit_cents(bill.total_bill_cents, sold, hpp)
        status = costing.payment_status(bill.total_bill_cents, paid)

        tx = Transaction(
            user_id=user_id,
            warung_id=warung.id,
            date=visit_date,
            initial_stock=initial,
            remaining_stock=remaining,
            sold=sold,
            restock_amount=restock,
            price_scheme_at_time=warung.price_scheme,
            unit_price_cents_at_time=bill.unit_price_cents,
            commission_bps_at_time=bill.commission_bps,
            total_bill_cents=bill.total_bill_cents,
            hpp_cents_at_time=hpp,
            profit_cents=profit,
            payment_status=status,
            paid_amount_cents=paid,
            notes=notes,
        )
        db.session.add(tx)

        warung.current_stock = remaining + restock
        db.session.commit()
        return tx, bill, hpp

    tx, bill, hpp = run_with_retry(_op)

    margin = costing.margin_percent(bill.unit_price_cents, hpp)
    threshold = current_app.config.get("LOW_MARGIN_THRESHOLD_PERCENT", 10)
    calculations = {
        "initial_stock": tx.initial_stock,
        "remaining_stock": tx.remaining_stock,
        "sold": tx.sold,
        "restock_amount": tx.restock_amount,
        "gross_cents": bill.gross_cents,
        "commission_cents": bill.commission_cents,
        "total_bill_cents": tx.total_bill_cents,
        "hpp_cents_at_time": hpp,
        "profit_cents": tx.profit_cents,
        "margin_percent": round(margin, 2),
        "is_low_margin": costing.is_low_margin(margin, threshold),
        "new_warung_stock": tx.remaining_stock + tx.restock_amount,
    }

    current_app.logger.info(
        "Visit %s to warung %s: sold %s, bill %s, status %s",
        tx.id, tx.warung_id, tx.sold, tx.total_bill_cents, tx.payment_status,
    )
    if calculations["is_low_margin"]:
        current_app.logger.warning(
            "Low margin on warung %s: %.2f%% (threshold %s%%)", tx.warung_id, margin, threshold
        )

    return tx, calculations


def _owned_query(user_id: int):
    return db.session.query(Transaction).filter(Transaction.user_id == user_id)


def list_transactions(*, user_id: int, warung_id: int | None = None, limit: int | None = None) -> dict:
    """Owner's visits, newest first, optionally for one warung."""
    query = _owned_query(user_id)
    if warung_id is not None:
        query = query.filter(Transaction.warung_id == warung_id)

    query = query.order_by(Transaction.date.desc(), Transaction.id.desc())
    if limit is not None:
        query = query.limit(limit)

    transactions = query.all()
    return {
        "items": [t.to_dict() for t in transactions],
        "count": len(transactions),
    }


def get_transaction(transaction_id: int, *, user_id: int) -> Transaction:
    return get_owned(Transaction, transaction_id, user_id, label="Transaction")


def get_last_for_warung(warung_id: int, *, user_id: int) -> Transaction | None:
    """Most recent visit to a warung (the previous stock reading), or None."""
    get_owned(Warung, warung_id, user_id, label="Warung")
    return (
        _owned_query(user_id)
        .filter(Transaction.warung_id == warung_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
        .first()
    )


def update_payment(transaction_id: int, paid_amount_cents, *, user_id: int) -> Transaction:
    """
    Record the amount paid so far on a visit.

    The status is always derived from the amount, never set directly, so it
    cannot disagree with paid_amount_cents.
    """
    paid = _paid_amount(paid_amount_cents)

    tx = get_owned(Transaction, transaction_id, user_id, label="Transaction", for_update=True)
    tx.paid_amount_cents = paid
    tx.payment_status = costing.payment_status(tx.total_bill_cents, paid)
    db.session.commit()
    return tx


def summary(*, user_id: int, start: datetime | None = None, end: datetime | None = None) -> dict:
    """Totals over visits whose date falls in [start, end]."""
    query = db.session.query(
        func.coalesce(func.sum(Transaction.sold), 0).label("total_sold"),
        func.coalesce(func.sum(Transaction.total_bill_cents), 0).label("total_bill_cents"),
        func.coalesce(func.sum(Transaction.profit_cents), 0).label("total_profit_cents"),
        func.coalesce(func.sum(Transaction.paid_amount_cents), 0).label("total_paid_cents"),
        func.count(Transaction.id).label("transaction_count"),
    ).filter(Transaction.user_id == user_id)

    if start is not None:
        query = query.filter(Transaction.date >= start)
    if end is not None:
        query = query.filter(Transaction.date <= end)

    row = query.one()
    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "total_sold": int(row.total_sold or 0),
        "total_bill_cents": int(row.total_bill_cents or 0),
        "total_profit_cents": int(row.total_profit_cents or 0),
        "total_paid_cents": int(row.total_paid_cents or 0),
        "transaction_count": int(row.transaction_count or 0),
    }
