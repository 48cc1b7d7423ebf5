# backend/backoffice/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process unless DATABASE_URL points elsewhere
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///backoffice.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin credentials are never hard-coded: the password is supplied as a
    # bcrypt hash (see `flask auth hash-password`). Login is refused while unset.
    ADMIN_USERNAME = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD_HASH = os.environ.get("ADMIN_PASSWORD_HASH")
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "12"))

    # Credit sale schedule defaults; callers may override per sale
    INSTALLMENT_COUNT_DEFAULT = int(os.environ.get("INSTALLMENT_COUNT_DEFAULT", "1"))
    INSTALLMENT_FIRST_DUE_DAYS = int(os.environ.get("INSTALLMENT_FIRST_DUE_DAYS", "22"))
    INSTALLMENT_INTERVAL_DAYS = int(os.environ.get("INSTALLMENT_INTERVAL_DAYS", "30"))

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "Gs.")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
