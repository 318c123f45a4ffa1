# Overview: Flask API routes for distribution visits; parses input and returns JSON responses.

# backend/sijuk/routes/transactions.py
"""Distribution transaction (warung visit) routes"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import transaction_service
from ..services.transaction_service import TransactionError
from ..validation import ValidationError, NotFoundError, parse_date_range, json_object, coerce_int
from ..decorators import require_auth


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
@require_auth
def create_transaction_route():
    """
    Record a visit to a warung.

    Body:
        warung_id: int
        remaining_stock: int (packs still on the shelf)
        restock_amount: int (optional, new packs left behind)
        paid_amount_cents: int (optional, paid on the spot)
        notes: str (optional)
    """
    try:
        data = json_object(request.get_json(silent=True))
        if "warung_id" not in data or "remaining_stock" not in data:
            return jsonify({"error": "warung_id and remaining_stock required"}), 400

        tx, calculations = transaction_service.create_transaction(
            user_id=g.user_id,
            warung_id=data["warung_id"],
            remaining_stock=data["remaining_stock"],
            restock_amount=data.get("restock_amount", 0),
            paid_amount_cents=data.get("paid_amount_cents", 0),
            notes=data.get("notes"),
        )

        return jsonify({"transaction": tx.to_dict(), "calculations": calculations}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except TransactionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("")
@require_auth
def list_transactions_route():
    """
    Query params:
    - warung_id: int (optional) - only visits to this warung
    """
    raw = request.args.get("warung_id")
    try:
        warung_id = coerce_int(raw, "warung_id") if raw else None
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(transaction_service.list_transactions(user_id=g.user_id, warung_id=warung_id)), 200


@transactions_bp.get("/summary")
@require_auth
def summary_route():
    """
    Query params:
    - start, end: ISO-8601 (optional) - inclusive date range
    """
    try:
        start, end = parse_date_range(request.args.get("start"), request.args.get("end"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(transaction_service.summary(user_id=g.user_id, start=start, end=end)), 200


@transactions_bp.get("/<int:transaction_id>")
@require_auth
def get_transaction_route(transaction_id: int):
    try:
        tx = transaction_service.get_transaction(transaction_id, user_id=g.user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"transaction": tx.to_dict()}), 200


@transactions_bp.put("/<int:transaction_id>/payment")
@require_auth
def update_payment_route(transaction_id: int):
    """
    Record the amount paid so far.

    Body: {"paid_amount_cents": int}. payment_status is derived from the amount.
    """
    try:
        data = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    if "paid_amount_cents" not in data:
        return jsonify({"error": "paid_amount_cents required"}), 400

    try:
        tx = transaction_service.update_payment(transaction_id, data["paid_amount_cents"], user_id=g.user_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"transaction": tx.to_dict()}), 200
