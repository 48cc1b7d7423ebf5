# Overview: Flask API routes for the cash ledger; parses input and returns JSON responses.

"""
Cash drawer log. Entries are append-only: there is no update or delete route.
"""

from flask import Blueprint, jsonify, request, current_app

from ..decorators import request_payload, require_auth
from ..services import ledger_service


cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash")


@cash_bp.get("")
@require_auth
def list_entries_route():
    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, 500))
    entries = ledger_service.list_entries(limit=limit)
    return jsonify({
        "items": [e.to_dict() for e in entries],
        "count": len(entries),
        "balance_cents": ledger_service.current_balance(),
    }), 200


@cash_bp.get("/balance")
@require_auth
def balance_route():
    return jsonify({
        "balance_cents": ledger_service.current_balance(),
        "currency": current_app.config["CURRENCY_LABEL"],
    }), 200


@cash_bp.post("")
@require_auth
def post_entry_route():
    """
    Request body: {"kind": "income" | "expense", "amount_cents": 5000, "description": "..."}
    """
    data = request_payload()
    entry = ledger_service.post_entry(
        kind=data.get("kind"),
        amount_cents=data.get("amount_cents"),
        description=data.get("description"),
    )
    return jsonify(entry.to_dict()), 201
