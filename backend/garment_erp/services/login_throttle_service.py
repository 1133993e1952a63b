"""
Login Throttling Service

Limits password guessing: once an identifier has LOGIN_RATE_LIMIT_MAX
failed logins inside LOGIN_RATE_LIMIT_WINDOW_MINUTES (counted since its
last successful login), further attempts are refused until the most recent
failure ages out of the window.

State lives in the login_attempts table, so every worker process sees the
same counts.
"""

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import LoginAttempt
from garment_erp.time_utils import utcnow


def _window() -> timedelta:
    return timedelta(minutes=current_app.config["LOGIN_RATE_LIMIT_WINDOW_MINUTES"])


def get_recent_failed_attempts(identifier: str) -> int:
    cutoff = utcnow() - _window()

    last_success = (
        db.session.query(db.func.max(LoginAttempt.occurred_at))
        .filter(LoginAttempt.identifier == identifier, LoginAttempt.success.is_(True))
        .scalar()
    )
    if last_success is not None and last_success > cutoff:
        cutoff = last_success

    return db.session.query(LoginAttempt).filter(
        LoginAttempt.identifier == identifier,
        LoginAttempt.success.is_(False),
        LoginAttempt.occurred_at > cutoff,
    ).count()


def is_account_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) if locked
    - (False, None) if not locked
    """
    if get_recent_failed_attempts(identifier) < current_app.config["LOGIN_RATE_LIMIT_MAX"]:
        return False, None

    most_recent = (
        db.session.query(db.func.max(LoginAttempt.occurred_at))
        .filter(LoginAttempt.identifier == identifier, LoginAttempt.success.is_(False))
        .scalar()
    )
    if most_recent is None:
        return False, None

    lockout_end = most_recent + _window()
    now = utcnow()
    if now >= lockout_end:
        return False, None
    return True, int((lockout_end - now).total_seconds())


def record_attempt(identifier: str, *, success: bool, ip_address: str | None = None) -> None:
    db.session.add(LoginAttempt(
        identifier=identifier,
        ip_address=ip_address,
        success=success,
        occurred_at=utcnow(),
    ))
    db.session.commit()
