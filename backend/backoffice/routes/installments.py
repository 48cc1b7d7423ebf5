# Overview: Flask API routes for credit installments; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import request_payload, require_auth
from ..services import installment_service


installments_bp = Blueprint("installments", __name__, url_prefix="/api/installments")


@installments_bp.get("/outstanding")
@require_auth
def outstanding_route():
    """Unpaid installments, earliest due first."""
    items = installment_service.list_outstanding()
    return jsonify({
        "items": items,
        "count": len(items),
        "total_outstanding_cents": sum(i["amount_cents"] for i in items),
    }), 200


@installments_bp.get("/<int:installment_id>")
@require_auth
def get_installment_route(installment_id: int):
    return jsonify(installment_service.get_installment(installment_id).to_dict()), 200


@installments_bp.post("/<int:installment_id>/payments")
@require_auth
def apply_payment_route(installment_id: int):
    """
    Request body: {"amount_cents": 400}
    """
    data = request_payload()
    installment = installment_service.apply_payment(installment_id, data.get("amount_cents"))
    return jsonify(installment.to_dict()), 200
