from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


PAYMENT_TYPE_CASH = "cash"
PAYMENT_TYPE_CREDIT = "credit"
VALID_PAYMENT_TYPES = (PAYMENT_TYPE_CASH, PAYMENT_TYPE_CREDIT)


class Sale(db.Model):
    """
    Sale header. Immutable once created.

    customer_id is NULL for counter (walk-in) sales and is also nulled when
    the customer is deleted. Cash sales post one income cash entry; credit
    sales own 1..N installments instead.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        db.CheckConstraint("payment_type IN ('cash', 'credit')", name="ck_sales_payment_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    total_cents = db.Column(db.Integer, nullable=False)
    payment_type = db.Column(db.String(16), nullable=False, default=PAYMENT_TYPE_CASH)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("sales", lazy=True))
    lines = db.relationship("SaleLine", back_populates="sale", lazy=True, order_by="SaleLine.id")
    installments = db.relationship("Installment", back_populates="sale", lazy=True, order_by="Installment.number")

    def to_dict(self, *, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer.name if self.customer else None,
            "total_cents": self.total_cents,
            "payment_type": self.payment_type,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
            data["installments"] = [i.to_dict() for i in self.installments]
        return data


class SaleLine(db.Model):
    """Price snapshot of one product on a sale. Never updated."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)

    # Name snapshot keeps history readable after the product is deleted
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="lines")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }


class Installment(db.Model):
    """
    One scheduled partial payment of a credit sale.

    amount_cents is the outstanding balance: it only decreases, and once
    is_paid flips to true it stays at zero.
    """
    __tablename__ = "installments"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "number", name="uq_installments_sale_number"),
        db.CheckConstraint("amount_cents >= 0", name="ck_installments_amount_non_negative"),
        db.Index("ix_installments_paid_due", "is_paid", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    number = db.Column(db.Integer, nullable=False)

    original_amount_cents = db.Column(db.Integer, nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    due_date = db.Column(db.Date, nullable=False)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    sale = db.relationship("Sale", back_populates="installments")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "number": self.number,
            "original_amount_cents": self.original_amount_cents,
            "amount_cents": self.amount_cents,
            "due_date": to_iso_date(self.due_date),
            "is_paid": self.is_paid,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
        }
