# Overview: Flask API routes for the admin login gate; parses input and returns JSON responses.

from flask import Blueprint, jsonify, current_app

from ..decorators import bearer_token, request_payload, require_auth
from ..services import auth_service, session_service
from ..time_utils import to_utc_z
from ..validation import clean_text


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Exchange admin credentials for a bearer token.

    Request body: {"username": "...", "password": "..."}
    """
    data = request_payload()
    username = clean_text("username", data.get("username")) or ""
    password = data.get("password")
    if not isinstance(password, str):
        password = ""

    if not auth_service.authenticate(username, password):
        current_app.logger.warning("Rejected login for username=%r", username)
        return jsonify({"error": "Invalid credentials"}), 401

    session, token = session_service.create_session(username)
    return jsonify({
        "token": token,
        "username": session.username,
        "expires_at": to_utc_z(session.expires_at),
    }), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"ok": True}), 200
