# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Products are keyed by their optional code. Submitting a code that already
exists merges into the existing row (stock adds up, descriptive and price
fields are overwritten); a product without a code is always a new row.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Product, SaleLine
from ..validation import NotFoundError, ValidationError, enforce_rules_product
from .concurrency import lock_for_update, run_in_transaction


PRODUCT_MUTABLE_FIELDS = {"name", "category", "code", "price_cents", "wholesale_price_cents", "unit_cost_cents"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def find_product_by_code(code: str | None) -> Product | None:
    """Read-only lookup used to pre-fill the product form."""
    code = (code or "").strip()
    if not code:
        return None
    return db.session.query(Product).filter_by(code=code).first()


def add_or_merge_product(*, patch: dict, stock_delta: int = 0) -> tuple[Product, bool]:
    """
    Create a product or merge into the existing one with the same code.

    Args:
        patch: Validated product fields (name, category, code, price_cents,
            wholesale_price_cents, unit_cost_cents)
        stock_delta: Units added to stock (initial stock for a new product)

    Returns:
        (product, created) where created is False for a merge

    Raises:
        ValidationError: If name or price_cents is missing, or a rule fails
    """
    if not (patch.get("name") or "").strip():
        raise ValidationError("name is required")
    if patch.get("price_cents") is None:
        raise ValidationError("price_cents is required")
    enforce_rules_product(patch)
    if stock_delta < 0:
        raise ValidationError("stock must be >= 0")

    code = (patch.get("code") or "").strip() or None
    patch = {**patch, "code": code}

    def _op():
        existing = None
        if code is not None:
            existing = lock_for_update(db.session.query(Product).filter_by(code=code)).first()

        if existing is not None:
            apply_product_patch(existing, patch)
            existing.stock = Product.stock + stock_delta
            db.session.flush()
            db.session.refresh(existing)
            return existing, False

        product = Product(stock=stock_delta)
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.flush()
        return product, True

    return run_in_transaction(_op)


def delete_product(product_id: int) -> None:
    """
    Delete a product. Sale lines keep their name/price snapshot and lose
    the product reference.

    Raises:
        NotFoundError: If the product does not exist
    """
    def _op():
        product = db.session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        db.session.query(SaleLine).filter(SaleLine.product_id == product_id).update(
            {SaleLine.product_id: None}, synchronize_session="fetch"
        )
        db.session.delete(product)

    run_in_transaction(_op)
