# Overview: Flask API routes for products; parses input and returns JSON responses.

"""
Product routes.

POST merges by code: an existing code adds `stock` to the current stock and
overwrites the other fields; 201 means a new product, 200 a merge.
"""
from flask import Blueprint, jsonify

from ..decorators import request_payload, require_auth
from ..models import Product
from ..services import products_service
from ..validation import ModelValidationPolicy, coerce_int, validate_payload

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "code", "price_cents", "wholesale_price_cents", "unit_cost_cents"},
    required_on_create={"name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products_route():
    products = products_service.list_products()
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@products_bp.get("/by-code/<string:code>")
@require_auth
def find_by_code_route(code: str):
    """Pre-fill lookup: returns {"product": null} rather than 404 when unknown."""
    product = products_service.find_product_by_code(code)
    return jsonify({"product": product.to_dict() if product else None}), 200


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    return jsonify(products_service.get_product(product_id).to_dict()), 200


@products_bp.post("")
@require_auth
def save_product_route():
    """
    Request body: {"name", "price_cents", "category"?, "code"?,
    "wholesale_price_cents"?, "unit_cost_cents"?, "stock"?}
    """
    payload = dict(request_payload())
    raw_stock = payload.pop("stock", None)
    stock_delta = 0 if raw_stock in (None, "") else coerce_int("stock", raw_stock)

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    product, created = products_service.add_or_merge_product(patch=patch, stock_delta=stock_delta)
    return jsonify(product.to_dict()), 201 if created else 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    products_service.delete_product(product_id)
    return jsonify({"ok": True}), 200
