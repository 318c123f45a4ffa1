# Overview: Pure cost-of-goods and settlement arithmetic; no database access.

"""
Costing rules for production batches and distribution visits.

All money is integer cents. Every step that can produce a fraction of a cent
rounds half-up to the nearest cent, the same rule used for weighted average
cost elsewhere in the codebase.

HPP (harga pokok produksi):
    hpp_per_unit = total_material_cost / quantity_produced   (0 if nothing produced)

Settlement for a visit where ``sold`` packs left the warung:
    net scheme:        total = sold * net_price
    commission scheme: gross = sold * selling_price
                       commission = gross * commission_bps / 10000
                       total = gross - commission

Payment status:
    paid     paid_amount >= total and total > 0
    partial  0 < paid_amount < total
    unpaid   everything else
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

BPS_DENOMINATOR = 10_000

SCHEME_NET = "net"
SCHEME_COMMISSION = "commission"

STATUS_UNPAID = "unpaid"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"


class CostingError(ValueError):
    """Raised when inputs make a calculation meaningless (negative sold, unknown scheme)."""


@dataclass(frozen=True)
class Settlement:
    unit_price_cents: int
    commission_bps: int | None
    gross_cents: int
    commission_cents: int
    total_bill_cents: int

    def to_dict(self) -> dict:
        return {
            "unit_price_cents": self.unit_price_cents,
            "commission_bps": self.commission_bps,
            "gross_cents": self.gross_cents,
            "commission_cents": self.commission_cents,
            "total_bill_cents": self.total_bill_cents,
        }


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest whole cent, halves away from zero."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _div_half_up(numerator: int, denominator: int) -> int:
    # nearest-cent rounding (half-up) for non-negative integers
    return (numerator + (denominator // 2)) // denominator


def line_cost_cents(unit_price_cents: int, quantity: Decimal | int) -> int:
    """Cost of consuming ``quantity`` units of a material priced per unit."""
    return round_half_up(Decimal(unit_price_cents) * Decimal(quantity))


def hpp_per_unit_cents(total_material_cost_cents: int, quantity_produced: int) -> int:
    if quantity_produced <= 0:
        return 0
    return _div_half_up(total_material_cost_cents, quantity_produced)


def sold_units(initial_stock: int, remaining_stock: int) -> int:
    sold = initial_stock - remaining_stock
    if sold < 0:
        raise CostingError("Remaining stock cannot exceed initial stock")
    return sold


def settlement(
    scheme: str,
    sold: int,
    *,
    net_price_cents: int | None = None,
    selling_price_cents: int | None = None,
    commission_bps: int | None = None,
) -> Settlement:
    """Bill for ``sold`` units under the warung's pricing scheme. Missing prices count as 0."""
    if sold < 0:
        raise CostingError("sold must be >= 0")

    if scheme == SCHEME_NET:
        unit_price = net_price_cents or 0
        total = sold * unit_price
        return Settlement(
            unit_price_cents=unit_price,
            commission_bps=None,
            gross_cents=total,
            commission_cents=0,
            total_bill_cents=total,
        )

    if scheme == SCHEME_COMMISSION:
        unit_price = selling_price_cents or 0
        bps = commission_bps or 0
        gross = sold * unit_price
        commission = _div_half_up(gross * bps, BPS_DENOMINATOR)
        return Settlement(
            unit_price_cents=unit_price,
            commission_bps=bps,
            gross_cents=gross,
            commission_cents=commission,
            total_bill_cents=gross - commission,
        )

    raise CostingError(f"Unknown price scheme: {scheme}")


def payment_status(total_bill_cents: int, paid_amount_cents: int) -> str:
    if total_bill_cents > 0 and paid_amount_cents >= total_bill_cents:
        return STATUS_PAID
    if 0 < paid_amount_cents < total_bill_cents:
        return STATUS_PARTIAL
    return STATUS_UNPAID


def profit_cents(total_bill_cents: int, sold: int, hpp_cents: int) -> int:
    return total_bill_cents - sold * hpp_cents


def margin_percent(unit_price_cents: int, hpp_cents: int) -> float:
    """Per-unit margin over the consumer or net price, in percent."""
    if unit_price_cents <= 0:
        return 0.0
    return (unit_price_cents - hpp_cents) / unit_price_cents * 100


def is_low_margin(margin: float, threshold_percent: float) -> bool:
    return margin < threshold_percent
