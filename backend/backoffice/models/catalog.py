from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


CUSTOMER_CATEGORY_COUNTER = "counter"
CUSTOMER_CATEGORY_WHOLESALE = "wholesale"


class Customer(db.Model):
    """
    Customer master data.

    category is free text; "counter" is the default and "wholesale" unlocks
    the wholesale price tier at sale time. document (national id / tax id)
    is optional but unique when present, and is the key used to update an
    existing customer instead of creating a duplicate.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("document", name="uq_customers_document"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(32), nullable=False, default=CUSTOMER_CATEGORY_COUNTER)
    document = db.Column(db.String(64), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def is_wholesale(self) -> bool:
        return (self.category or "").strip().lower() == CUSTOMER_CATEGORY_WHOLESALE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "document": self.document,
            "phone": self.phone,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master with two price tiers and an optional unit cost.

    Products are merged by code: submitting an existing code adds to stock
    and overwrites the descriptive and price fields.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_products_code"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_stock", "stock"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=True)
    code = db.Column(db.String(64), nullable=True)

    # All money in minor units
    price_cents = db.Column(db.Integer, nullable=False)
    wholesale_price_cents = db.Column(db.Integer, nullable=True)
    unit_cost_cents = db.Column(db.Integer, nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def allowed_prices(self) -> set[int]:
        prices = {self.price_cents}
        if self.wholesale_price_cents is not None:
            prices.add(self.wholesale_price_cents)
        return prices

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "code": self.code,
            "price_cents": self.price_cents,
            "wholesale_price_cents": self.wholesale_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
            "stock": self.stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
