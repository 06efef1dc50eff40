# backend/wholesale/config.py
from __future__ import annotations
import os


def current_environment() -> str:
    """Deployment environment name, read at call time."""
    return (
        os.environ.get("WHOLESALE_ENV")
        or os.environ.get("FLASK_ENV")
        or "development"
    ).strip().lower()


def is_production() -> bool:
    return current_environment() == "production"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/wholesale.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///wholesale.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    ENVIRONMENT = current_environment()

    # Invoice numbers are rendered as f"{prefix}-{invoice_id:06d}"
    INVOICE_NUMBER_PREFIX = os.environ.get("INVOICE_NUMBER_PREFIX", "INV")
