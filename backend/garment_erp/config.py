# backend/garment_erp/config.py
from __future__ import annotations
import os


class Config:
    # Signs bearer tokens; override in every real deployment
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///garment_erp.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Tokens are stateless and expire after a fixed age (24h default)
    TOKEN_MAX_AGE_SECONDS = int(os.environ.get("TOKEN_MAX_AGE_SECONDS", 24 * 60 * 60))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", 12))

    UPLOAD_FOLDER = os.environ.get(
        "UPLOAD_FOLDER",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "uploads"),
    )
    MAX_IMAGE_BYTES = int(os.environ.get("MAX_IMAGE_BYTES", 5 * 1024 * 1024))

    # Whole request body cap; Flask answers 413 above this
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 10 * 1024 * 1024))

    ALLOWED_ORIGIN = os.environ.get("ALLOWED_ORIGIN", "*")

    LOGIN_RATE_LIMIT_WINDOW_MINUTES = int(os.environ.get("LOGIN_RATE_LIMIT_WINDOW_MINUTES", 15))
    LOGIN_RATE_LIMIT_MAX = int(os.environ.get("LOGIN_RATE_LIMIT_MAX", 10))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
