# Overview: Flask API routes for login and user administration.

# backend/garment_erp/routes/auth.py
"""
Authentication API routes

- POST /login is public and throttled per identifier
- /me needs any valid token
- /register and /users are admin only; there is no self-registration
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import login_throttle_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth, require_admin


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _request_data() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by username or email and return a bearer token.

    Responses: 200 {token, user}, 400 missing fields, 401 invalid
    credentials, 429 too many recent failures.
    """
    data = _request_data()
    identifier = data.get("username") or data.get("email")
    password = data.get("password")

    if not identifier or not password:
        return jsonify({"error": "Username and password required"}), 400
    if not isinstance(identifier, str) or not isinstance(password, str):
        return jsonify({"error": "Username and password must be strings"}), 400

    try:
        is_locked, seconds_remaining = login_throttle_service.is_account_locked(identifier)
        if is_locked:
            return jsonify({
                "error": "Too many failed login attempts, try again later",
                "retry_after_seconds": seconds_remaining,
            }), 429

        user = auth_service.authenticate(identifier, password)
        login_throttle_service.record_attempt(
            identifier, success=user is not None, ip_address=request.remote_addr
        )
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        token = session_service.issue_token(user)
        current_app.logger.info("User %s logged in", user.username)
        return jsonify({"token": token, "user": user.to_dict()}), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()})


@auth_bp.post("/register")
@require_auth
@require_admin
def register_route():
    """Create a user account. Role defaults to "user"."""
    data = _request_data()

    try:
        user = auth_service.create_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role") or "user",
        )
    except ConflictError as e:
        return jsonify({"error": str(e), "field": e.field}), 400
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "User created successfully", "userId": user.id}), 201


@auth_bp.get("/users")
@require_auth
@require_admin
def list_users_route():
    users = auth_service.list_users()
    return jsonify({"users": [u.to_dict() for u in users]})
