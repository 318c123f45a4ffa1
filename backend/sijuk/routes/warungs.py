# Overview: Flask API routes for warungs operations; parses input and returns JSON responses.

# backend/sijuk/routes/warungs.py
"""
Warung (consignment partner) routes.

All routes require authentication and are scoped to the caller (g.user_id).
DELETE is a soft delete: the warung leaves listings, its visit history stays.
"""
from flask import Blueprint, request, g
from ..services import warung_service, transaction_service
from ..models import Warung
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    json_object,
    enforce_rules_warung,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

WARUNG_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "address", "phone",
        "price_scheme", "net_price_cents", "selling_price_cents", "commission_bps",
    },
    required_on_create={"name", "price_scheme"},
)

warungs_bp = Blueprint("warungs", __name__, url_prefix="/api/warungs")


@warungs_bp.get("")
@require_auth
def list_warungs_route():
    """
    List active warungs.

    Query params:
    - search: str (optional) - case-insensitive match on name or address
    """
    search = request.args.get("search")
    return warung_service.list_warungs(user_id=g.user_id, search=search)


@warungs_bp.post("")
@require_auth
def create_warung_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Warung, payload=payload, policy=WARUNG_POLICY, partial=False)
        enforce_rules_warung(patch)
        created = warung_service.create_warung(patch=patch, user_id=g.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@warungs_bp.get("/<int:warung_id>")
@require_auth
def get_warung_route(warung_id: int):
    try:
        warung = warung_service.get_warung(warung_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return warung.to_dict(), 200


@warungs_bp.put("/<int:warung_id>")
@require_auth
def update_warung_route(warung_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Warung, payload=payload, policy=WARUNG_POLICY, partial=True)
        enforce_rules_warung(patch)
        updated = warung_service.update_warung(warung_id, patch=patch, user_id=g.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated.to_dict(), 200


@warungs_bp.delete("/<int:warung_id>")
@require_auth
def delete_warung_route(warung_id: int):
    try:
        warung_service.deactivate_warung(warung_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"ok": True}, 200


@warungs_bp.put("/<int:warung_id>/stock")
@require_auth
def set_stock_route(warung_id: int):
    """Body: {"current_stock": int}"""
    try:
        payload = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return {"error": str(e)}, 400
    if "current_stock" not in payload:
        return {"error": "current_stock required"}, 400

    try:
        warung = warung_service.set_stock(warung_id, payload["current_stock"], user_id=g.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return warung.to_dict(), 200


@warungs_bp.get("/<int:warung_id>/last-transaction")
@require_auth
def last_transaction_route(warung_id: int):
    """Most recent visit to this warung; transaction is null before the first visit."""
    try:
        tx = transaction_service.get_last_for_warung(warung_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"transaction": tx.to_dict() if tx else None}, 200
