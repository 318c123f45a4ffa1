# Overview: Service-layer operations for the dashboard rollup; read-only aggregation.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Transaction, ProductionBatch, Warung
from sijuk.time_utils import utcnow, to_utc_z, month_bounds, week_start, day_bounds
from . import expense_service, transaction_service
from .production_service import get_latest_hpp

# Short Indonesian day names, Sunday first
DAY_NAMES = ("Min", "Sen", "Sel", "Rab", "Kam", "Jum", "Sab")


def _day_name(day: datetime) -> str:
    return DAY_NAMES[(day.weekday() + 1) % 7]


def summary(*, user_id: int, now: datetime | None = None) -> dict:
    """
    Month-to-date rollup for the calendar month containing ``now``.

    gross profit is the sum of visit profits (bill minus HPP of units sold);
    net profit additionally subtracts operating expenses.
    """
    now = now or utcnow()
    start, end = month_bounds(now)

    sales = transaction_service.summary(user_id=user_id, start=start, end=end)
    total_expenses = expense_service.total_expenses_cents(user_id=user_id, start=start, end=end)

    production = db.session.query(
        func.coalesce(func.sum(ProductionBatch.total_material_cost_cents), 0).label("total_cost"),
        func.coalesce(func.sum(ProductionBatch.quantity_produced), 0).label("total_produced"),
    ).filter(
        ProductionBatch.user_id == user_id,
        ProductionBatch.date >= start,
        ProductionBatch.date <= end,
    ).one()

    active_warungs = db.session.query(func.count(Warung.id)).filter(
        Warung.user_id == user_id,
        Warung.is_active.is_(True),
    ).scalar()

    total_sales = sales["total_bill_cents"]
    gross_profit = sales["total_profit_cents"]

    return {
        "total_sales_cents": total_sales,
        "total_sold": sales["total_sold"],
        "gross_profit_cents": gross_profit,
        "total_expenses_cents": total_expenses,
        "net_profit_cents": gross_profit - total_expenses,
        "total_production_cost_cents": int(production.total_cost or 0),
        "total_produced": int(production.total_produced or 0),
        "active_warungs": int(active_warungs or 0),
        "latest_hpp_cents": get_latest_hpp(user_id=user_id),
        "unpaid_amount_cents": total_sales - sales["total_paid_cents"],
        "period": {
            "start": to_utc_z(start),
            "end": to_utc_z(end),
        },
    }


def recent_transactions(*, user_id: int, limit: int = 5) -> dict:
    return transaction_service.list_transactions(user_id=user_id, limit=limit)


def weekly(*, user_id: int, now: datetime | None = None) -> dict:
    """Sales and profit per day for the seven days starting Sunday of the current week."""
    now = now or utcnow()
    first_day = week_start(now)

    days = []
    for offset in range(7):
        day_start, day_end = day_bounds(first_day + timedelta(days=offset))
        row = db.session.query(
            func.coalesce(func.sum(Transaction.total_bill_cents), 0).label("sales"),
            func.coalesce(func.sum(Transaction.profit_cents), 0).label("profit"),
        ).filter(
            Transaction.user_id == user_id,
            Transaction.date >= day_start,
            Transaction.date <= day_end,
        ).one()

        days.append({
            "date": day_start.date().isoformat(),
            "day_name": _day_name(day_start),
            "sales_cents": int(row.sales or 0),
            "profit_cents": int(row.profit or 0),
        })

    return {"days": days}
