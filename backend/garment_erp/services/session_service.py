# Overview: Bearer token issuance and resolution.

"""
Session Token Service

Tokens are stateless: a signed, timestamped payload of the user's id,
username and role (itsdangerous URLSafeTimedSerializer keyed by SECRET_KEY).
Nothing is stored server-side, so there is no revocation list; a token is
valid until TOKEN_MAX_AGE_SECONDS after issuance.

resolve_token() always re-reads the user row, so a role change takes effect
on the next request even though the token still carries the old role.
"""

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..extensions import db
from ..models import User

TOKEN_SALT = "garment-erp.auth-token"


class AuthError(Exception):
    """401-level: missing, malformed, expired or orphaned token."""

    def __init__(self, reason: str, message: str = "Invalid or expired token"):
        super().__init__(message)
        self.reason = reason


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user: User) -> str:
    return _serializer().dumps({
        "id": user.id,
        "username": user.username,
        "role": user.role,
    })


def resolve_token(token: str | None) -> User:
    if not token:
        raise AuthError("missing", "Access token required")

    try:
        payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE_SECONDS"])
    except SignatureExpired:
        raise AuthError("expired")
    except BadSignature:
        raise AuthError("invalid")

    user_id = payload.get("id") if isinstance(payload, dict) else None
    if not isinstance(user_id, int):
        raise AuthError("invalid")

    user = db.session.get(User, user_id)
    if user is None:
        raise AuthError("unknown_user")
    return user
