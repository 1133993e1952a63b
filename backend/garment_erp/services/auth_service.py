# Overview: Service-layer operations for user accounts and password checks.

"""
Authentication Service

Users are created by administrators (or the `flask users create` CLI).
Passwords are hashed with bcrypt; the cost factor comes from BCRYPT_ROUNDS.
Login accepts either the username or the email as the identifier.
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, ROLES, ROLE_USER
from ..validation import ValidationError, ConflictError
from garment_erp.time_utils import utcnow

MIN_PASSWORD_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe comparison; a malformed stored hash counts as a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _duplicate_field(username: str, email: str) -> str | None:
    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing is None:
        return None
    return "username" if existing.username == username else "email"


def create_user(username: str, email: str, password: str, role: str = ROLE_USER) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ValidationError: missing fields, malformed email, short password, unknown role
        ConflictError: username or email already taken
    """
    for name, value in (("username", username), ("email", email), ("password", password), ("role", role)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")

    username = (username or "").strip()
    email = (email or "").strip()
    role = (role or ROLE_USER).strip()

    if not username or not email or not password:
        raise ValidationError("Username, email, and password required")
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")
    if not EMAIL_PATTERN.match(email) or len(email) > 255:
        raise ValidationError("email is not a valid address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    field = _duplicate_field(username, email)
    if field:
        raise ConflictError("Username or email already exists", field=field)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.session.rollback()
        raise ConflictError("Username or email already exists", field=_duplicate_field(username, email))

    current_app.logger.info("Created user %s (role=%s)", user.username, user.role)
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """
    Return the user when the password matches, None otherwise.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == identifier, User.email == identifier)
    ).first()

    if not user or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def list_users() -> list[User]:
    return (
        db.session.query(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def ensure_default_admin(username: str, email: str, password: str) -> tuple[User, bool]:
    """Create the bootstrap admin unless an account with that username exists."""
    user = db.session.query(User).filter_by(username=username).first()
    if user:
        return user, False
    return create_user(username, email, password, role="admin"), True
