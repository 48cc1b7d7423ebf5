# Overview: Request helpers and decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service
from .validation import ValidationError


def request_payload() -> dict:
    """JSON body, or the submitted form when the admin UI posts one."""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("Invalid payload")
    return data


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require an admin session.

    Sets g.session (the SessionToken) and g.username for the route.
    Returns 401 when the Authorization header is missing, or the token is
    unknown, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        session = session_service.validate_session(token)
        if session is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session = session
        g.username = session.username
        return f(*args, **kwargs)

    return decorated_function
