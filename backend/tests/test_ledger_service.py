import pytest

from backoffice.models import CashEntry
from backoffice.services import installment_service, ledger_service, sales_service
from backoffice.services.sales_service import LineRequest
from backoffice.validation import ValidationError


def _recomputed_balance() -> int:
    entries = ledger_service.list_entries()
    return sum(e.amount_cents if e.kind == "income" else -e.amount_cents for e in entries)


class TestPostEntry:
    def test_income_and_expense_move_the_balance(self, db_session):
        ledger_service.post_entry("income", 50_000, "Opening float")
        ledger_service.post_entry("expense", 12_000, "Cleaning supplies")

        assert ledger_service.current_balance() == 38_000
        assert ledger_service.totals_by_kind() == {"income": 50_000, "expense": 12_000}

    def test_empty_ledger_balance_is_zero(self, db_session):
        assert ledger_service.current_balance() == 0

    def test_form_values_are_accepted(self, db_session):
        entry = ledger_service.post_entry("Expense", "2500", "  Bus fare ")
        assert entry.kind == "expense"
        assert entry.amount_cents == 2500
        assert entry.description == "Bus fare"

    @pytest.mark.parametrize("amount", [0, -10, "", None, "12.5"])
    def test_non_positive_or_malformed_amount_is_rejected(self, db_session, amount):
        with pytest.raises(ValidationError):
            ledger_service.post_entry("income", amount, "bad")
        assert db_session.query(CashEntry).count() == 0

    def test_unknown_kind_is_rejected(self, db_session):
        with pytest.raises(ValidationError):
            ledger_service.post_entry("transfer", 100, "bad")
        assert db_session.query(CashEntry).count() == 0

    def test_entries_are_listed_newest_first(self, db_session):
        first = ledger_service.post_entry("income", 100, "first")
        second = ledger_service.post_entry("income", 200, "second")

        assert [e.id for e in ledger_service.list_entries()] == [second.id, first.id]
        assert [e.id for e in ledger_service.list_entries(limit=1)] == [second.id]


def test_balance_matches_log_across_mixed_operations(db_session, customer, product):
    ledger_service.post_entry("income", 10_000, "Opening float")
    sales_service.register_sale(None, "cash", [LineRequest(product.id, 2)])
    ledger_service.post_entry("expense", 1_500, "Ice")
    credit = sales_service.register_sale(customer.id, "credit", [LineRequest(product.id, 3)], installment_count=2)
    first_installment = sales_service.get_sale(credit.id).installments[0]
    installment_service.apply_payment(first_installment.id, 700)

    assert ledger_service.current_balance() == _recomputed_balance() == 10_000 + 2_000 - 1_500 + 700
