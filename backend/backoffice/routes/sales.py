# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import request_payload, require_auth
from ..services import sales_service
from ..services.sales_service import LineRequest, parse_line_requests
from ..validation import coerce_int


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

FORM_QTY_PREFIX = "qty_"
FORM_PRICE_PREFIX = "price_"


def _optional_int(data: dict, key: str) -> int | None:
    value = data.get(key)
    if value in (None, ""):
        return None
    return coerce_int(key, value)


def _lines_from_form(data: dict) -> list[LineRequest]:
    """The sale form posts one qty_<product_id> (and optional price_<product_id>) per product."""
    lines = []
    for key, value in data.items():
        if not key.startswith(FORM_QTY_PREFIX) or value in (None, ""):
            continue
        product_id = coerce_int("product_id", key[len(FORM_QTY_PREFIX):])
        price = data.get(f"{FORM_PRICE_PREFIX}{product_id}")
        lines.append(LineRequest(
            product_id=product_id,
            quantity=coerce_int(key, value),
            unit_price_cents=None if price in (None, "") else coerce_int("unit_price_cents", price),
        ))
    return lines


@sales_bp.get("")
@require_auth
def list_sales_route():
    limit = request.args.get("limit", type=int)
    if limit is not None:
        limit = max(1, min(limit, 500))
    sales = sales_service.list_sales(limit=limit)
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Sale with its lines and installments."""
    sale = sales_service.get_sale(sale_id)
    return jsonify({"sale": sale.to_dict(include_lines=True)}), 200


@sales_bp.post("")
@require_auth
def register_sale_route():
    """
    Register a sale.

    Request body:
    {
        "customer_id": 3,              (optional, omitted = counter sale)
        "payment_type": "cash",        ("cash" | "credit")
        "lines": [{"product_id": 1, "quantity": 2, "unit_price_cents": 1000}],
        "installment_count": 3,        (credit only, optional)
        "interval_days": 7,            (credit only, optional)
        "first_due_days": 7            (credit only, optional)
    }
    """
    data = request_payload()
    if "lines" in data:
        lines = parse_line_requests(data["lines"])
    else:
        lines = _lines_from_form(data)

    sale = sales_service.register_sale(
        customer_id=_optional_int(data, "customer_id"),
        payment_type=data.get("payment_type") or "cash",
        lines=lines,
        installment_count=_optional_int(data, "installment_count"),
        interval_days=_optional_int(data, "interval_days"),
        first_due_days=_optional_int(data, "first_due_days"),
    )
    return jsonify({"sale": sale.to_dict(include_lines=True)}), 201
