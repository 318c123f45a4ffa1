# Overview: Service-layer operations for operating expenses.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Expense
from ..validation import EXPENSE_CATEGORIES
from sijuk.time_utils import to_utc_z
from .owner_service import get_owned

EXPENSE_MUTABLE_FIELDS = {"category", "amount_cents", "description", "date"}


def apply_expense_patch(e: Expense, patch: dict) -> None:
    for k, v in patch.items():
        if k not in EXPENSE_MUTABLE_FIELDS:
            continue
        setattr(e, k, v)


def _in_range(query, start: datetime | None, end: datetime | None):
    if start is not None:
        query = query.filter(Expense.date >= start)
    if end is not None:
        query = query.filter(Expense.date <= end)
    return query


def list_expenses(*, user_id: int, start: datetime | None = None, end: datetime | None = None) -> dict:
    """Owner's expenses, newest first, optionally within [start, end]."""
    query = _in_range(db.session.query(Expense).filter(Expense.user_id == user_id), start, end)
    expenses = query.order_by(Expense.date.desc(), Expense.id.desc()).all()
    return {
        "items": [e.to_dict() for e in expenses],
        "count": len(expenses),
    }


def get_expense(expense_id: int, *, user_id: int) -> Expense:
    return get_owned(Expense, expense_id, user_id, label="Expense")


def create_expense(*, patch: dict, user_id: int) -> Expense:
    expense = Expense(user_id=user_id)
    apply_expense_patch(expense, patch)
    db.session.add(expense)
    db.session.commit()
    return expense


def update_expense(expense_id: int, *, patch: dict, user_id: int) -> Expense:
    expense = get_expense(expense_id, user_id=user_id)
    apply_expense_patch(expense, patch)
    db.session.commit()
    return expense


def delete_expense(expense_id: int, *, user_id: int) -> None:
    expense = get_expense(expense_id, user_id=user_id)
    db.session.delete(expense)
    db.session.commit()


def total_expenses_cents(*, user_id: int, start: datetime | None = None, end: datetime | None = None) -> int:
    query = db.session.query(func.coalesce(func.sum(Expense.amount_cents), 0)).filter(
        Expense.user_id == user_id
    )
    return int(_in_range(query, start, end).scalar() or 0)


def summary(*, user_id: int, start: datetime | None = None, end: datetime | None = None) -> dict:
    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "total_expenses_cents": total_expenses_cents(user_id=user_id, start=start, end=end),
    }


def by_category(*, user_id: int, start: datetime | None = None, end: datetime | None = None) -> dict:
    """Per-category totals. Categories without expenses are reported as 0."""
    query = db.session.query(
        Expense.category,
        func.coalesce(func.sum(Expense.amount_cents), 0).label("total_cents"),
    ).filter(Expense.user_id == user_id)
    rows = _in_range(query, start, end).group_by(Expense.category).all()

    totals = {category: 0 for category in EXPENSE_CATEGORIES}
    for row in rows:
        totals[row.category] = int(row.total_cents or 0)

    return {
        "start": to_utc_z(start),
        "end": to_utc_z(end),
        "rows": [
            {"category": category, "total_cents": total}
            for category, total in totals.items()
        ],
    }
