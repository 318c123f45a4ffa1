# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


BEARER_PREFIX = "Bearer "


def bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return None
    return header[len(BEARER_PREFIX):].strip() or None


def require_auth(f):
    """
    Reject the request with 401 unless it carries a live session token.

    On success the view can rely on ``g.current_user``, ``g.user_id`` (what
    every owner-scoped query filters on) and ``g.session_context``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.user_id = context.user_id
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function
