# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, send_file
from io import BytesIO

from ..decorators import require_auth
from ..services import report_service
from ..time_utils import today

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reports_bp.get("/summary")
@require_auth
def summary_route():
    return jsonify(report_service.dashboard_summary()), 200


@reports_bp.get("/low-stock")
@require_auth
def low_stock_route():
    """Query params: threshold (optional, defaults to LOW_STOCK_THRESHOLD)."""
    threshold = request.args.get("threshold", type=int)
    products = report_service.low_stock(threshold)
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)}), 200


@reports_bp.get("/margins")
@require_auth
def margins_route():
    items = report_service.product_margins()
    return jsonify({"items": items, "count": len(items)}), 200


@reports_bp.get("/sales.xlsx")
@require_auth
def sales_export_route():
    content = report_service.export_sales_workbook()
    return send_file(
        BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"sales-{today().isoformat()}.xlsx",
    )
