# Overview: Flask API routes for materials operations; parses input and returns JSON responses.

# backend/sijuk/routes/materials.py
"""
Raw material routes.

All routes require authentication and are scoped to the caller (g.user_id).
"""
from flask import Blueprint, request, g, current_app
from ..services import materials_service
from ..models import Material
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    json_object,
    enforce_rules_material,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth

MATERIAL_POLICY = ModelValidationPolicy(
    writable_fields={"name", "unit", "buy_price_cents", "stock"},
    required_on_create={"name", "unit", "buy_price_cents"},
)

materials_bp = Blueprint("materials", __name__, url_prefix="/api/materials")


@materials_bp.get("")
@require_auth
def list_materials_route():
    """List the caller's materials, newest first."""
    return materials_service.list_materials(user_id=g.user_id)


@materials_bp.post("")
@require_auth
def create_material_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Material, payload=payload, policy=MATERIAL_POLICY, partial=False)
        enforce_rules_material(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = materials_service.create_material(patch=patch, user_id=g.user_id)
    except Exception:
        current_app.logger.exception("Failed to create material")
        return {"error": "Internal server error"}, 500

    return created.to_dict(), 201


@materials_bp.get("/<int:material_id>")
@require_auth
def get_material_route(material_id: int):
    try:
        material = materials_service.get_material(material_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return material.to_dict(), 200


@materials_bp.put("/<int:material_id>")
@require_auth
def update_material_route(material_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Material, payload=payload, policy=MATERIAL_POLICY, partial=True)
        enforce_rules_material(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = materials_service.update_material(material_id, patch=patch, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated.to_dict(), 200


@materials_bp.delete("/<int:material_id>")
@require_auth
def delete_material_route(material_id: int):
    try:
        materials_service.delete_material(material_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200


@materials_bp.post("/<int:material_id>/stock")
@require_auth
def add_stock_route(material_id: int):
    """
    Record incoming stock.

    Body: {"amount": "2.5"}  (in the material's unit, > 0)
    """
    try:
        payload = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return {"error": str(e)}, 400
    if "amount" not in payload:
        return {"error": "amount required"}, 400

    try:
        material = materials_service.add_stock(material_id, payload["amount"], user_id=g.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return material.to_dict(), 200
