# Overview: Service-layer operations for admin sessions; encapsulates business logic and database work.

"""
Session Token Management

- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage; the plaintext only ever
  travels to the client
- Absolute lifetime of SESSION_TTL_HOURS
- Revocable on logout
"""

import hashlib
import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken
from ..time_utils import utcnow
from .concurrency import run_in_transaction


def generate_token() -> str:
    return secrets.token_hex(32)  # 32 bytes = 64 hex characters


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(username: str) -> tuple[SessionToken, str]:
    """Returns (session record, plaintext token)."""
    token = generate_token()
    ttl = timedelta(hours=current_app.config["SESSION_TTL_HOURS"])

    def _op():
        session = SessionToken(
            username=username,
            token_hash=hash_token(token),
            created_at=utcnow(),
            expires_at=utcnow() + ttl,
        )
        db.session.add(session)
        db.session.flush()
        return session

    return run_in_transaction(_op), token


def validate_session(token: str) -> SessionToken | None:
    """Return the live session for token, or None if unknown, expired or revoked."""
    session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
    if session is None or session.revoked_at is not None:
        return None

    now = utcnow()
    if session.expires_at <= now:
        return None

    session.last_used_at = now
    db.session.commit()
    return session


def revoke_session(token: str) -> bool:
    def _op():
        session = db.session.query(SessionToken).filter_by(token_hash=hash_token(token)).first()
        if session is None or session.revoked_at is not None:
            return False
        session.revoked_at = utcnow()
        return True

    return run_in_transaction(_op)
