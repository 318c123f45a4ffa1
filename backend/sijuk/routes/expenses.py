# Overview: Flask API routes for expenses operations; parses input and returns JSON responses.

from flask import Blueprint, request, g
from ..services import expense_service
from ..models import Expense
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_expense,
    parse_date_range,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

EXPENSE_POLICY = ModelValidationPolicy(
    writable_fields={"category", "amount_cents", "description", "date"},
    required_on_create={"category", "amount_cents", "date"},
)

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


def _range_args():
    return parse_date_range(request.args.get("start"), request.args.get("end"))


@expenses_bp.get("")
@require_auth
def list_expenses_route():
    """Query params: start, end (optional ISO-8601, inclusive)."""
    try:
        start, end = _range_args()
    except ValidationError as e:
        return {"error": str(e)}, 400
    return expense_service.list_expenses(user_id=g.user_id, start=start, end=end)


@expenses_bp.get("/summary")
@require_auth
def summary_route():
    try:
        start, end = _range_args()
    except ValidationError as e:
        return {"error": str(e)}, 400
    return expense_service.summary(user_id=g.user_id, start=start, end=end)


@expenses_bp.get("/by-category")
@require_auth
def by_category_route():
    try:
        start, end = _range_args()
    except ValidationError as e:
        return {"error": str(e)}, 400
    return expense_service.by_category(user_id=g.user_id, start=start, end=end)


@expenses_bp.post("")
@require_auth
def create_expense_route():
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=False)
        enforce_rules_expense(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    created = expense_service.create_expense(patch=patch, user_id=g.user_id)
    return created.to_dict(), 201


@expenses_bp.get("/<int:expense_id>")
@require_auth
def get_expense_route(expense_id: int):
    try:
        expense = expense_service.get_expense(expense_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return expense.to_dict(), 200


@expenses_bp.put("/<int:expense_id>")
@require_auth
def update_expense_route(expense_id: int):
    payload = request.get_json(silent=True)

    try:
        patch = validate_payload(model=Expense, payload=payload, policy=EXPENSE_POLICY, partial=True)
        enforce_rules_expense(patch)
        updated = expense_service.update_expense(expense_id, patch=patch, user_id=g.user_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated.to_dict(), 200


@expenses_bp.delete("/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        expense_service.delete_expense(expense_id, user_id=g.user_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"ok": True}, 200
