from flask import Blueprint, jsonify, request, g

from sijuk.decorators import require_auth
from sijuk.services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/summary")
@require_auth
def summary():
    return jsonify(dashboard_service.summary(user_id=g.user_id)), 200


@dashboard_bp.get("/recent-transactions")
@require_auth
def recent_transactions():
    limit = request.args.get("limit", 5, type=int)
    if limit < 1:
        return jsonify({"error": "limit must be positive"}), 400

    return jsonify(dashboard_service.recent_transactions(user_id=g.user_id, limit=limit)), 200


@dashboard_bp.get("/weekly")
@require_auth
def weekly():
    return jsonify(dashboard_service.weekly(user_id=g.user_id)), 200
