# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, jsonify

from ..decorators import request_payload, require_auth
from ..models import Customer
from ..services import customer_service
from ..validation import ModelValidationPolicy, validate_payload

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "document", "phone"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    customers = customer_service.list_customers()
    return jsonify({"items": [c.to_dict() for c in customers], "count": len(customers)}), 200


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    return jsonify(customer_service.get_customer(customer_id).to_dict()), 200


@customers_bp.post("")
@require_auth
def save_customer_route():
    """
    Create a customer, or update the one with the same document id.

    Request body: {"name", "category"?, "document"?, "phone"?}
    """
    patch = validate_payload(model=Customer, payload=request_payload(), policy=CUSTOMER_POLICY, partial=False)
    customer = customer_service.add_or_update_customer(
        patch["name"],
        category=patch.get("category"),
        document=patch.get("document"),
        phone=patch.get("phone"),
    )
    return jsonify(customer.to_dict()), 201


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    customer_service.delete_customer(customer_id)
    return jsonify({"ok": True}), 200
