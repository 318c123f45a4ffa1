# Overview: Flask API routes for production batches; parses input and returns JSON responses.

# backend/sijuk/routes/production.py
"""Production batch routes with automatic HPP calculation"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import production_service
from ..services.production_service import ProductionError
from ..validation import ValidationError, NotFoundError, json_object
from ..decorators import require_auth
from sijuk.time_utils import parse_iso_datetime


production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.post("")
@require_auth
def create_batch_route():
    """
    Record a production batch.

    Body:
        date: ISO-8601 (optional, defaults to now)
        quantity_produced: int (finished packs)
        items: [{"material_id": int, "quantity_used": "1.5"}, ...]
        notes: str (optional)

    Consumes material stock and returns the batch with its HPP per unit.
    """
    try:
        data = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if "quantity_produced" not in data:
        return jsonify({"error": "quantity_produced required"}), 400

    try:
        date = parse_iso_datetime(data.get("date")) if data.get("date") else None
    except ValueError:
        return jsonify({"error": "date must be an ISO-8601 datetime"}), 400

    try:
        batch, hpp = production_service.create_batch(
            user_id=g.user_id,
            date=date,
            quantity_produced=data.get("quantity_produced"),
            items=data.get("items") or [],
            notes=data.get("notes"),
        )
        return jsonify({"batch": batch.to_dict(), "hpp_per_unit_cents": hpp}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ProductionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create production batch")
        return jsonify({"error": "Internal server error"}), 500


@production_bp.get("")
@require_auth
def list_batches_route():
    return jsonify(production_service.list_batches(user_id=g.user_id)), 200


@production_bp.get("/latest-hpp")
@require_auth
def latest_hpp_route():
    """HPP per unit of the latest batch (null when nothing was produced yet)."""
    return jsonify({"hpp_per_unit_cents": production_service.get_latest_hpp(user_id=g.user_id)}), 200


@production_bp.get("/<int:batch_id>")
@require_auth
def get_batch_route(batch_id: int):
    try:
        batch = production_service.get_batch(batch_id, user_id=g.user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"batch": batch.to_dict()}), 200


@production_bp.delete("/<int:batch_id>")
@require_auth
def delete_batch_route(batch_id: int):
    try:
        production_service.delete_batch(batch_id, user_id=g.user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True}), 200
