# Overview: Admin credential checks for the HTTP gate.

"""
The back office has a single admin account. Its username and bcrypt hash
come from configuration (ADMIN_USERNAME / ADMIN_PASSWORD_HASH); nothing is
hard-coded. While no hash is configured every login is refused.
"""

import hmac

import bcrypt
from flask import current_app


MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(Exception):
    """Raised when a password is too weak to be hashed."""
    pass


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Used by `flask auth hash-password` to produce ADMIN_PASSWORD_HASH.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate(username: str | None, password: str | None) -> bool:
    expected_user = current_app.config.get("ADMIN_USERNAME")
    password_hash = current_app.config.get("ADMIN_PASSWORD_HASH")

    if not username or not password or not expected_user or not password_hash:
        return False

    user_ok = hmac.compare_digest(username.encode('utf-8'), expected_user.encode('utf-8'))
    # Always run bcrypt so a wrong username costs the same as a wrong password
    password_ok = verify_password(password, password_hash)
    return user_ok and password_ok
