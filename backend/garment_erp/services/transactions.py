# Overview: Transaction scope helpers; every multi-row catalog write runs inside atomic().

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


@contextmanager
def atomic():
    """
    Commit on normal exit, roll back on any exception and re-raise it.

    Everything flushed inside the block becomes visible to other sessions
    together, or not at all.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise


def is_unique_violation(exc, *names: str) -> bool:
    """
    True when an IntegrityError was raised by one of the given unique
    constraints. SQLite reports column names, PostgreSQL reports constraint
    names, so callers pass both.
    """
    message = str(getattr(exc, "orig", exc)).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return any(name.lower() in message for name in names)
