# Overview: Read-only reporting over the catalog, sales and cash ledger.

from __future__ import annotations

from io import BytesIO

from flask import current_app
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Installment, Product, Sale
from ..time_utils import today
from . import ledger_service, sales_service


def dashboard_summary() -> dict:
    """Figures shown at the top of the back office."""
    outstanding_total, outstanding_count = (
        db.session.query(func.coalesce(func.sum(Installment.amount_cents), 0), func.count(Installment.id))
        .filter(Installment.is_paid.is_(False))
        .one()
    )
    overdue_count = (
        db.session.query(func.count(Installment.id))
        .filter(Installment.is_paid.is_(False), Installment.due_date < today())
        .scalar()
    )
    totals = ledger_service.totals_by_kind()

    return {
        "cash_balance_cents": ledger_service.current_balance(),
        "income_cents": totals["income"],
        "expense_cents": totals["expense"],
        "product_count": db.session.query(func.count(Product.id)).scalar(),
        "customer_count": db.session.query(func.count(Customer.id)).scalar(),
        "sale_count": db.session.query(func.count(Sale.id)).scalar(),
        "outstanding_credit_cents": int(outstanding_total),
        "outstanding_installments": outstanding_count,
        "overdue_installments": overdue_count,
        "low_stock_count": len(low_stock()),
        "currency": current_app.config["CURRENCY_LABEL"],
    }


def low_stock(threshold: int | None = None) -> list[Product]:
    """Products at or below the threshold, emptiest first."""
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    return (
        db.session.query(Product)
        .filter(Product.stock <= threshold)
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )


def product_margins() -> list[dict]:
    """
    Unit margin per product. margin_pct is relative to the unit price and
    is None when the cost is unknown or the price is zero.
    """
    items = []
    for p in db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()):
        margin = None
        margin_pct = None
        wholesale_margin = None
        if p.unit_cost_cents is not None:
            margin = p.price_cents - p.unit_cost_cents
            if p.price_cents:
                margin_pct = round(margin * 100 / p.price_cents, 2)
            if p.wholesale_price_cents is not None:
                wholesale_margin = p.wholesale_price_cents - p.unit_cost_cents
        items.append({
            "product_id": p.id,
            "name": p.name,
            "code": p.code,
            "price_cents": p.price_cents,
            "wholesale_price_cents": p.wholesale_price_cents,
            "unit_cost_cents": p.unit_cost_cents,
            "margin_cents": margin,
            "margin_pct": margin_pct,
            "wholesale_margin_cents": wholesale_margin,
            "stock": p.stock,
        })
    return items


SALES_SHEET_HEADERS = ["Sale", "Date", "Customer", "Payment", "Product", "Quantity", "Unit price", "Line total", "Sale total"]


def export_sales_workbook() -> bytes:
    """One row per sale line, plus a sheet with the cash log."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Sales"
    ws.append(SALES_SHEET_HEADERS)

    for sale in reversed(sales_service.list_sales()):
        customer = sale.customer.name if sale.customer else "Counter"
        for line in sale.lines:
            ws.append([
                sale.id,
                sale.created_at,
                customer,
                sale.payment_type,
                line.product_name,
                line.quantity,
                line.unit_price_cents,
                line.line_total_cents,
                sale.total_cents,
            ])

    cash = wb.create_sheet("Cash")
    cash.append(["Entry", "Date", "Kind", "Amount", "Description"])
    for entry in reversed(ledger_service.list_entries()):
        cash.append([entry.id, entry.occurred_at, entry.kind, entry.amount_cents, entry.description])
    cash.append([])
    cash.append(["", "", "Balance", ledger_service.current_balance(), ""])

    for sheet in (ws, cash):
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for idx in range(1, sheet.max_column + 1):
            sheet.column_dimensions[get_column_letter(idx)].width = 16

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
