from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from sijuk.time_utils import parse_iso_datetime, day_bounds

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum money amount: Rp 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Material quantities are Numeric(12, 3)
MAX_QUANTITY = Decimal("999999999.999")

MATERIAL_UNITS = ("kg", "liter", "tabung", "pack", "bal", "lembar")
PRICE_SCHEMES = ("net", "commission")
EXPENSE_CATEGORIES = ("fuel", "meals", "parking", "other")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., material still in use)."""


class NotFoundError(LookupError):
    """404-level: row does not exist or belongs to another user."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects floats, decimals and scientific notation."""
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_decimal(value: Any, field: str, places: int = 3) -> Decimal:
    """Coerce numbers and numeric strings to a Decimal with at most ``places`` fraction digits."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            dec = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not dec.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    # 1.5000 is 1.5: trailing zeros do not count as decimal places
    if -dec.normalize().as_tuple().exponent > places:
        raise ValidationError(f"{field} allows at most {places} decimal places")
    return dec


def json_object(payload: Any) -> dict:
    """Request body for routes that read fields by hand; no body reads as {}."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    # Fixed-point quantities
    if isinstance(coltype, Numeric):
        return coerce_decimal(value, col.key, places=coltype.scale or 0)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")


    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_money(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        amount = patch[field]
        if amount < 0:
            raise ValidationError(f"{field} must be >= 0")
        if amount > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def _check_quantity(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        qty = patch[field]
        if qty < 0:
            raise ValidationError(f"{field} must be >= 0")
        if qty > MAX_QUANTITY:
            raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")


def enforce_rules_material(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "unit" in patch and patch["unit"] not in MATERIAL_UNITS:
        raise ValidationError(f"unit must be one of: {', '.join(MATERIAL_UNITS)}")
    _check_money(patch, "buy_price_cents")
    _check_quantity(patch, "stock")


def enforce_rules_warung(patch: dict) -> None:
    if "price_scheme" in patch and patch["price_scheme"] not in PRICE_SCHEMES:
        raise ValidationError(f"price_scheme must be one of: {', '.join(PRICE_SCHEMES)}")
    _check_money(patch, "net_price_cents")
    _check_money(patch, "selling_price_cents")
    if "commission_bps" in patch and patch["commission_bps"] is not None:
        if not 0 <= patch["commission_bps"] <= 10_000:
            raise ValidationError("commission_bps must be between 0 and 10000")


def enforce_warung_scheme_complete(warung) -> None:
    """A warung's pricing fields must match its scheme once a patch is applied."""
    if warung.price_scheme == "net":
        if warung.net_price_cents is None:
            raise ValidationError("net_price_cents is required for the net scheme")
    elif warung.price_scheme == "commission":
        if warung.selling_price_cents is None:
            raise ValidationError("selling_price_cents is required for the commission scheme")
        if warung.commission_bps is None:
            raise ValidationError("commission_bps is required for the commission scheme")


def enforce_rules_expense(patch: dict) -> None:
    if "category" in patch and patch["category"] not in EXPENSE_CATEGORIES:
        raise ValidationError(f"category must be one of: {', '.join(EXPENSE_CATEGORIES)}")
    _check_money(patch, "amount_cents")
    if "amount_cents" in patch and patch["amount_cents"] == 0:
        raise ValidationError("amount_cents must be > 0")


def _is_date_only(value: str) -> bool:
    try:
        date.fromisoformat(value.strip())
    except ValueError:
        return False
    return True


def parse_date_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """
    Parse optional ISO-8601 ``start``/``end`` query values.

    Both ends are inclusive. A bare date as ``end`` ("2026-06-30") covers that
    whole day, so ``start=D&end=D`` selects everything on day D.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates")
    if end_dt is not None and _is_date_only(end):
        end_dt = day_bounds(end_dt)[1]
    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start must be before end")
    return start_dt, end_dt
