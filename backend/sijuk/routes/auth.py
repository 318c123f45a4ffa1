# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/sijuk/routes/auth.py
"""
Authentication API routes

- First-account registration (closed once any account exists)
- Session management with token-based auth
- Onboarding status for the first-run setup screens
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError, RegistrationClosedError
from ..decorators import require_auth, bearer_token
from ..validation import ValidationError, json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.get("/registration-status")
def registration_status_route():
    """Whether the signup screen should be offered (no account exists yet)."""
    return jsonify({"can_register": auth_service.can_register()}), 200


@auth_bp.post("/register")
def register_route():
    """
    Create the first owner account and log it in.

    Once an account exists this returns 403; more accounts are created with
    the CLI: flask users create
    """
    try:
        data = json_object(request.get_json(silent=True))
        name = (data.get("name") or "").strip()
        username = (data.get("username") or "").strip()
        email = (data.get("email") or "").strip()
        password = data.get("password")

        if not all([name, username, email, password]):
            return jsonify({"error": "name, username, email and password required"}), 400

        user = auth_service.register(name=name, username=username, email=email, password=password)
        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
        }), 201

    except RegistrationClosedError as e:
        return jsonify({"error": str(e)}), 403
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = json_object(request.get_json(silent=True))
        username = data.get("username") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username/email and password required"}), 400

        user = auth_service.authenticate(username, password)

        if not user:
            current_app.logger.warning("Failed login for %s from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    Body (optional): {"all": true} to end every session of the account.
    """
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        data = json_object(request.get_json(silent=True))
        if data.get("all") is True:
            context = session_service.validate_session(token)
            if not context:
                return jsonify({"error": "Invalid or expired token"}), 401
            revoked = session_service.revoke_all_user_sessions(context.user_id)
            return jsonify({"message": "Logout successful", "revoked_sessions": revoked}), 200

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/validate")
def validate_route():
    """
    Validate session token and return the user.

    Expects Authorization header: Bearer <token>
    """
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({
            "user": context.user.to_dict(),
            "message": "Token valid"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to validate session")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/onboarding")
@require_auth
def onboarding_status_route():
    return jsonify(auth_service.onboarding_status(g.current_user)), 200


@auth_bp.post("/onboarding/complete")
@require_auth
def complete_onboarding_route():
    """Mark first-run setup done (also used when the owner skips every step)."""
    auth_service.complete_onboarding(g.current_user)
    return jsonify(auth_service.onboarding_status(g.current_user)), 200
