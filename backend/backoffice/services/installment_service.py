# Overview: Service-layer operations for installment payments; encapsulates business logic and database work.

"""
Installment Reconciliation

DESIGN PRINCIPLES:
- A payment reduces the outstanding amount; reaching zero marks it paid
- Overpayment is accepted and floored at zero (the cash entry still records
  the full amount received)
- Each payment posts exactly one income cash entry, in the same transaction
- A paid installment is closed: further payments are rejected
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.orm import contains_eager

from ..extensions import db
from ..models import Customer, Installment, Sale
from ..models.cash import ENTRY_INCOME
from ..time_utils import to_utc_z, today, utcnow
from ..validation import ConflictError, NotFoundError, enforce_positive_amount
from .concurrency import lock_for_update, run_in_transaction
from .ledger_service import append_cash_entry


def get_installment(installment_id: int) -> Installment:
    installment = db.session.get(Installment, installment_id)
    if installment is None:
        raise NotFoundError(f"Installment {installment_id} not found")
    return installment


def apply_payment(installment_id: int, payment_amount_cents) -> Installment:
    """
    Apply a (partial) payment to an installment.

    Raises:
        ValidationError: If the amount is missing or not > 0
        NotFoundError: If the installment does not exist
        ConflictError: If the installment is already paid, or another
            payment changed it concurrently
    """
    amount = enforce_positive_amount("amount_cents", payment_amount_cents)

    def _op():
        installment = lock_for_update(db.session.query(Installment).filter_by(id=installment_id)).first()
        if installment is None:
            raise NotFoundError(f"Installment {installment_id} not found")

        if installment.is_paid:
            raise ConflictError(
                "Installment is already paid",
                details={"installment_id": installment_id},
            )

        new_balance = installment.amount_cents - amount
        if new_balance <= 0:
            installment.amount_cents = 0
            installment.is_paid = True
            installment.paid_at = utcnow()
        else:
            installment.amount_cents = new_balance

        append_cash_entry(
            kind=ENTRY_INCOME,
            amount_cents=amount,
            description=f"Installment #{installment.number} of sale #{installment.sale_id}",
            sale_id=installment.sale_id,
            installment_id=installment.id,
        )
        db.session.flush()
        return installment

    installment = run_in_transaction(_op)
    current_app.logger.info(
        "Applied payment of %s to installment %s (remaining=%s, paid=%s)",
        amount, installment.id, installment.amount_cents, installment.is_paid,
    )
    return installment


def list_outstanding() -> list[dict]:
    """
    Unpaid installments with their sale and customer, earliest due first.
    """
    rows = (
        db.session.query(Installment)
        .join(Installment.sale)
        .outerjoin(Sale.customer)
        .options(contains_eager(Installment.sale).contains_eager(Sale.customer))
        .filter(Installment.is_paid.is_(False))
        .order_by(Installment.due_date.asc(), Installment.id.asc())
        .all()
    )

    current_day = today()
    items = []
    for installment in rows:
        sale = installment.sale
        customer: Customer | None = sale.customer
        item = installment.to_dict()
        item.update({
            "sale_total_cents": sale.total_cents,
            "sale_created_at": to_utc_z(sale.created_at),
            "customer_id": sale.customer_id,
            "customer_name": customer.name if customer else None,
            "customer_phone": customer.phone if customer else None,
            "is_overdue": installment.due_date < current_day,
        })
        items.append(item)
    return items
