from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


ENTRY_INCOME = "income"
ENTRY_EXPENSE = "expense"
VALID_ENTRY_KINDS = (ENTRY_INCOME, ENTRY_EXPENSE)


class CashEntry(db.Model):
    """
    Append-only cash drawer log.

    The drawer balance is never stored; it is always recomputed as
    sum(income) - sum(expense). sale_id / installment_id link entries
    posted by the sales engine and by installment payments.
    """
    __tablename__ = "cash_entries"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_cash_entries_amount_positive"),
        db.CheckConstraint("kind IN ('income', 'expense')", name="ck_cash_entries_kind"),
        db.Index("ix_cash_entries_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    installment_id = db.Column(db.Integer, db.ForeignKey("installments.id"), nullable=True, index=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "sale_id": self.sale_id,
            "installment_id": self.installment_id,
            "occurred_at": to_utc_z(self.occurred_at),
        }
