# Overview: Service-layer operations for the cash ledger; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import case, func

from ..extensions import db
from ..models import CashEntry
from ..models.cash import ENTRY_EXPENSE, ENTRY_INCOME, VALID_ENTRY_KINDS
from ..time_utils import utcnow
from ..validation import ValidationError, clean_text, enforce_positive_amount
from .concurrency import run_in_transaction
"""
Cash Ledger Invariants (authoritative)

- Append-only: entries are never updated or deleted.
- Every amount is strictly positive; kind decides the sign.
- Entries posted by a sale or an installment payment are written inside the
  same DB transaction as the event they record.
- The balance is derived on every read, never stored.
"""


def append_cash_entry(
    *,
    kind: str,
    amount_cents: int,
    description: str | None = None,
    sale_id: int | None = None,
    installment_id: int | None = None,
) -> CashEntry:
    """
    Append one entry to the current transaction without committing.

    Callers own the transaction boundary.
    """
    if kind not in VALID_ENTRY_KINDS:
        raise ValidationError(f"Invalid entry kind: {kind}. Must be one of {list(VALID_ENTRY_KINDS)}")
    if amount_cents is None or amount_cents <= 0:
        raise ValidationError("amount_cents must be > 0")

    entry = CashEntry(
        kind=kind,
        amount_cents=amount_cents,
        description=description,
        sale_id=sale_id,
        installment_id=installment_id,
        occurred_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry


def post_entry(kind: str, amount_cents, description: str | None = None) -> CashEntry:
    """Manually record money in or out of the drawer."""
    kind = (clean_text("kind", kind) or "").lower()
    amount = enforce_positive_amount("amount_cents", amount_cents)
    description = clean_text("description", description)

    return run_in_transaction(
        lambda: append_cash_entry(kind=kind, amount_cents=amount, description=description)
    )


def current_balance() -> int:
    """sum(income) - sum(expense), recomputed from the log on every call."""
    signed = case(
        (CashEntry.kind == ENTRY_INCOME, CashEntry.amount_cents),
        (CashEntry.kind == ENTRY_EXPENSE, -CashEntry.amount_cents),
        else_=0,
    )
    total = db.session.query(func.coalesce(func.sum(signed), 0)).scalar()
    return int(total)


def totals_by_kind() -> dict[str, int]:
    rows = (
        db.session.query(CashEntry.kind, func.coalesce(func.sum(CashEntry.amount_cents), 0))
        .group_by(CashEntry.kind)
        .all()
    )
    totals = {ENTRY_INCOME: 0, ENTRY_EXPENSE: 0}
    for kind, amount in rows:
        totals[kind] = int(amount)
    return totals


def list_entries(limit: int | None = None) -> list[CashEntry]:
    """Newest first."""
    query = db.session.query(CashEntry).order_by(CashEntry.occurred_at.desc(), CashEntry.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()
