# Overview: Service-layer operations for warungs (consignment partners).

from __future__ import annotations

from ..extensions import db
from ..models import Warung
from ..validation import ValidationError, coerce_int, enforce_warung_scheme_complete
from .owner_service import get_owned

WARUNG_MUTABLE_FIELDS = {
    "name", "address", "phone",
    "price_scheme", "net_price_cents", "selling_price_cents", "commission_bps",
}


def apply_warung_patch(w: Warung, patch: dict) -> None:
    for k, v in patch.items():
        if k not in WARUNG_MUTABLE_FIELDS:
            continue
        setattr(w, k, v)


def list_warungs(*, user_id: int, search: str | None = None) -> dict:
    """
    Active warungs, newest first.

    search: case-insensitive substring match on name or address.
    """
    query = db.session.query(Warung).filter(
        Warung.user_id == user_id,
        Warung.is_active.is_(True),
    )

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            db.or_(Warung.name.ilike(pattern), Warung.address.ilike(pattern))
        )

    warungs = query.order_by(Warung.created_at.desc(), Warung.id.desc()).all()
    return {
        "items": [w.to_dict() for w in warungs],
        "count": len(warungs),
    }


def get_warung(warung_id: int, *, user_id: int) -> Warung:
    return get_owned(Warung, warung_id, user_id, label="Warung")


def create_warung(*, patch: dict, user_id: int) -> Warung:
    """New warungs start with no consigned stock."""
    warung = Warung(user_id=user_id, price_scheme="net", current_stock=0, is_active=True)
    apply_warung_patch(warung, patch)
    enforce_warung_scheme_complete(warung)

    db.session.add(warung)
    db.session.commit()
    return warung


def update_warung(warung_id: int, *, patch: dict, user_id: int) -> Warung:
    warung = get_warung(warung_id, user_id=user_id)
    apply_warung_patch(warung, patch)
    try:
        enforce_warung_scheme_complete(warung)
    except ValidationError:
        db.session.rollback()
        raise
    db.session.commit()
    return warung


def deactivate_warung(warung_id: int, *, user_id: int) -> Warung:
    """Soft delete: the warung disappears from listings but its visits remain."""
    warung = get_warung(warung_id, user_id=user_id)
    warung.is_active = False
    db.session.commit()
    return warung


def set_stock(warung_id: int, new_stock, *, user_id: int) -> Warung:
    """Manual correction of the consigned stock count."""
    stock = coerce_int(new_stock, "current_stock")
    if stock < 0:
        raise ValidationError("current_stock must be >= 0")

    warung = get_owned(Warung, warung_id, user_id, label="Warung", for_update=True)
    warung.current_stock = stock
    db.session.commit()
    return warung
