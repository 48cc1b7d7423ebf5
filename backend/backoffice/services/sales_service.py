"""
Sales Engine - one call registers a whole sale

A sale is created together with its line snapshots, the stock decrements,
and either the cash entry (cash) or the installment schedule (credit), all
inside a single transaction. Any failure leaves no trace: no stock moved,
no orphan sale, line, installment or cash rows.

Stock is checked against the locked product rows and decremented with a
conditional UPDATE (stock >= quantity), so two concurrent sales can never
both consume the last units.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from flask import current_app
from sqlalchemy.orm import joinedload, selectinload

from ..extensions import db
from ..models import Customer, Installment, Product, Sale, SaleLine
from ..models.cash import ENTRY_INCOME
from ..models.sales import PAYMENT_TYPE_CASH, PAYMENT_TYPE_CREDIT, VALID_PAYMENT_TYPES
from ..time_utils import utcnow
from ..validation import InsufficientStockError, MAX_AMOUNT_CENTS, NotFoundError, ValidationError, clean_text, coerce_int
from .concurrency import lock_for_update, run_in_transaction
from .ledger_service import append_cash_entry


@dataclass(frozen=True)
class LineRequest:
    """One product the caller selected. unit_price_cents=None lets the engine pick the tier."""

    product_id: int
    quantity: int
    unit_price_cents: int | None = None


@dataclass(frozen=True)
class InstallmentPlan:
    count: int
    first_due_days: int
    interval_days: int


def split_installments(total_cents: int, count: int) -> list[int]:
    """
    Split total_cents into count amounts that sum exactly to the total.

    The remainder of the integer division goes one unit at a time to the
    first installments.
    """
    if count < 1:
        raise ValidationError("installment_count must be >= 1")
    base, remainder = divmod(total_cents, count)
    return [base + (1 if i < remainder else 0) for i in range(count)]


def schedule_installments(total_cents: int, plan: InstallmentPlan, start: date) -> list[tuple[int, int, date]]:
    """Return (number, amount_cents, due_date) for each installment, 1-based."""
    amounts = split_installments(total_cents, plan.count)
    return [
        (i + 1, amount, start + timedelta(days=plan.first_due_days + i * plan.interval_days))
        for i, amount in enumerate(amounts)
    ]


def _resolve_plan(
    installment_count: int | None,
    interval_days: int | None,
    first_due_days: int | None,
) -> InstallmentPlan:
    cfg = current_app.config
    count = cfg["INSTALLMENT_COUNT_DEFAULT"] if installment_count is None else installment_count
    interval = cfg["INSTALLMENT_INTERVAL_DAYS"] if interval_days is None else interval_days
    if first_due_days is None:
        # A caller-supplied spacing without an explicit first due date means
        # the first installment falls one interval after the sale.
        first_due_days = interval if interval_days is not None else cfg["INSTALLMENT_FIRST_DUE_DAYS"]

    if count < 1:
        raise ValidationError("installment_count must be >= 1")
    if interval < 1:
        raise ValidationError("interval_days must be >= 1")
    if first_due_days < 0:
        raise ValidationError("first_due_days must be >= 0")
    return InstallmentPlan(count=count, first_due_days=first_due_days, interval_days=interval)


def _normalize_lines(lines: list[LineRequest]) -> dict[int, LineRequest]:
    """Drop non-positive quantities and merge repeated products."""
    merged: dict[int, LineRequest] = {}
    for req in lines:
        if req.quantity <= 0:
            continue
        prev = merged.get(req.product_id)
        if prev is None:
            merged[req.product_id] = req
            continue
        if prev.unit_price_cents != req.unit_price_cents:
            raise ValidationError(
                "Conflicting prices for the same product",
                details={"product_id": req.product_id},
            )
        merged[req.product_id] = LineRequest(req.product_id, prev.quantity + req.quantity, prev.unit_price_cents)
    return merged


def _resolve_unit_price(product: Product, customer: Customer | None, requested: int | None) -> int:
    if requested is None:
        if customer is not None and customer.is_wholesale and product.wholesale_price_cents is not None:
            return product.wholesale_price_cents
        return product.price_cents

    if requested not in product.allowed_prices():
        raise ValidationError(
            "Unit price must be the product's unit or wholesale price",
            details={"product_id": product.id, "unit_price_cents": requested},
        )
    return requested


def parse_line_requests(raw_lines) -> list[LineRequest]:
    """Build LineRequests from decoded JSON/form items."""
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list")

    requests = []
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise ValidationError(f"lines[{i}] must be an object")
        if raw.get("product_id") in (None, ""):
            raise ValidationError(f"lines[{i}].product_id is required")
        price = raw.get("unit_price_cents")
        requests.append(LineRequest(
            product_id=coerce_int("product_id", raw["product_id"]),
            quantity=coerce_int("quantity", raw.get("quantity", 0) or 0),
            unit_price_cents=None if price in (None, "") else coerce_int("unit_price_cents", price),
        ))
    return requests


def register_sale(
    customer_id: int | None,
    payment_type: str,
    lines: list[LineRequest],
    installment_count: int | None = None,
    interval_days: int | None = None,
    first_due_days: int | None = None,
) -> Sale:
    """
    Register a sale atomically.

    Args:
        customer_id: Registered customer, or None for a counter sale
        payment_type: "cash" or "credit"
        lines: Requested products; quantities <= 0 are ignored
        installment_count: Credit only; defaults to INSTALLMENT_COUNT_DEFAULT
        interval_days: Credit only; days between installments
        first_due_days: Credit only; days from the sale to the first due date

    Returns:
        The committed Sale

    Raises:
        ValidationError: Unknown payment type, nothing selected, bad price or plan
        NotFoundError: Customer or product does not exist
        InsufficientStockError: A quantity exceeds the product's current stock
    """
    payment_type = (clean_text("payment_type", payment_type) or "").lower()
    if payment_type not in VALID_PAYMENT_TYPES:
        raise ValidationError(f"Invalid payment type: {payment_type}. Must be one of {list(VALID_PAYMENT_TYPES)}")

    requested = _normalize_lines(lines)
    if not requested:
        raise ValidationError("no products selected")

    plan = None
    if payment_type == PAYMENT_TYPE_CREDIT:
        plan = _resolve_plan(installment_count, interval_days, first_due_days)

    def _op():
        customer = None
        if customer_id is not None:
            customer = db.session.get(Customer, customer_id)
            if customer is None:
                raise NotFoundError(f"Customer {customer_id} not found")

        product_ids = sorted(requested)
        # Lock in id order so concurrent sales cannot deadlock each other
        products = {
            p.id: p
            for p in lock_for_update(
                db.session.query(Product).filter(Product.id.in_(product_ids)).order_by(Product.id)
            ).all()
        }
        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise NotFoundError(f"Product {missing[0]} not found")

        priced = []
        for pid in product_ids:
            product = products[pid]
            req = requested[pid]
            if req.quantity > product.stock:
                raise InsufficientStockError(pid, req.quantity, product.stock)
            priced.append((product, req.quantity, _resolve_unit_price(product, customer, req.unit_price_cents)))

        total = sum(qty * price for _, qty, price in priced)
        if total <= 0:
            raise ValidationError("Sale total must be > 0")
        if total > MAX_AMOUNT_CENTS:
            raise ValidationError(f"Sale total cannot exceed {MAX_AMOUNT_CENTS}")
        if plan is not None and plan.count > total:
            raise ValidationError("installment_count cannot exceed the sale total")

        now = utcnow()
        sale = Sale(customer_id=customer_id, total_cents=total, payment_type=payment_type, created_at=now)
        db.session.add(sale)
        db.session.flush()

        for product, qty, price in priced:
            db.session.add(SaleLine(
                sale_id=sale.id,
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                unit_price_cents=price,
                line_total_cents=qty * price,
            ))
            updated = (
                db.session.query(Product)
                .filter(Product.id == product.id, Product.stock >= qty)
                .update({Product.stock: Product.stock - qty}, synchronize_session=False)
            )
            if updated != 1:
                db.session.refresh(product)
                raise InsufficientStockError(product.id, qty, product.stock)
            db.session.expire(product, ["stock"])

        if payment_type == PAYMENT_TYPE_CASH:
            append_cash_entry(
                kind=ENTRY_INCOME,
                amount_cents=total,
                description=f"Sale #{sale.id}",
                sale_id=sale.id,
            )
        else:
            for number, amount, due in schedule_installments(total, plan, now.date()):
                db.session.add(Installment(
                    sale_id=sale.id,
                    number=number,
                    original_amount_cents=amount,
                    amount_cents=amount,
                    due_date=due,
                    is_paid=False,
                ))

        db.session.flush()
        return sale

    sale = run_in_transaction(_op)
    current_app.logger.info(
        "Registered %s sale %s total=%s lines=%s", sale.payment_type, sale.id, sale.total_cents, len(requested)
    )
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = (
        db.session.query(Sale)
        .options(joinedload(Sale.customer), selectinload(Sale.lines), selectinload(Sale.installments))
        .filter(Sale.id == sale_id)
        .first()
    )
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale


def list_sales(limit: int | None = None) -> list[Sale]:
    """Newest first."""
    query = (
        db.session.query(Sale)
        .options(joinedload(Sale.customer))
        .order_by(Sale.created_at.desc(), Sale.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()
