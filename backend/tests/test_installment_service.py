from datetime import timedelta

import pytest

from backoffice.models import CashEntry, Installment, Sale
from backoffice.services import installment_service, ledger_service, sales_service
from backoffice.services.sales_service import LineRequest
from backoffice.time_utils import today
from backoffice.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def credit_sale(db_session, customer, product):
    """Total 3000 in three weekly installments of 1000."""
    sale = sales_service.register_sale(
        customer.id, "credit", [LineRequest(product.id, 3, 1000)], installment_count=3, interval_days=7
    )
    return sales_service.get_sale(sale.id)


class TestApplyPayment:
    def test_full_payment_marks_paid_and_posts_income(self, db_session, credit_sale):
        first = credit_sale.installments[0]

        result = installment_service.apply_payment(first.id, 1000)

        assert result.amount_cents == 0
        assert result.is_paid is True
        assert result.paid_at is not None

        entries = db_session.query(CashEntry).all()
        assert len(entries) == 1
        assert entries[0].kind == "income"
        assert entries[0].amount_cents == 1000
        assert entries[0].installment_id == first.id
        assert entries[0].sale_id == credit_sale.id

    def test_partial_payment_reduces_balance(self, db_session, credit_sale):
        second = credit_sale.installments[1]

        result = installment_service.apply_payment(second.id, 400)

        assert result.amount_cents == 600
        assert result.is_paid is False
        assert result.original_amount_cents == 1000
        assert ledger_service.current_balance() == 400

    def test_repeated_partial_payments_decrease_monotonically(self, db_session, credit_sale):
        installment_id = credit_sale.installments[2].id
        seen = []
        for amount in (250, 250, 300, 200):
            seen.append(installment_service.apply_payment(installment_id, amount).amount_cents)

        assert seen == [750, 500, 200, 0]
        assert installment_service.get_installment(installment_id).is_paid is True
        assert ledger_service.current_balance() == 1000

    def test_overpayment_is_floored_at_zero(self, db_session, credit_sale):
        first = credit_sale.installments[0]

        result = installment_service.apply_payment(first.id, 1500)

        assert result.amount_cents == 0
        assert result.is_paid is True
        # The drawer records what was actually received
        assert ledger_service.current_balance() == 1500

    def test_paid_installment_rejects_further_payments(self, db_session, credit_sale):
        first = credit_sale.installments[0]
        installment_service.apply_payment(first.id, 1000)

        with pytest.raises(ConflictError):
            installment_service.apply_payment(first.id, 10)

        stored = installment_service.get_installment(first.id)
        assert stored.amount_cents == 0
        assert stored.is_paid is True
        assert db_session.query(CashEntry).count() == 1

    @pytest.mark.parametrize("amount", [0, -100, None, "abc"])
    def test_invalid_amount(self, db_session, credit_sale, amount):
        with pytest.raises(ValidationError):
            installment_service.apply_payment(credit_sale.installments[0].id, amount)
        assert db_session.query(CashEntry).count() == 0

    def test_missing_installment(self, db_session):
        with pytest.raises(NotFoundError):
            installment_service.apply_payment(424242, 100)
        assert db_session.query(CashEntry).count() == 0


class TestOutstanding:
    def test_ordered_by_due_date_with_customer(self, db_session, credit_sale, customer, second_product):
        counter_credit = sales_service.register_sale(
            None, "credit", [LineRequest(second_product.id, 1)], installment_count=1, first_due_days=3
        )

        items = installment_service.list_outstanding()

        due_dates = [i["due_date"] for i in items]
        assert due_dates == sorted(due_dates)
        assert items[0]["sale_id"] == counter_credit.id
        assert items[0]["customer_name"] is None
        assert items[1]["customer_name"] == "Ana Benítez"
        assert items[1]["sale_total_cents"] == 3000
        assert len(items) == 4

    def test_paid_installments_are_excluded(self, db_session, credit_sale):
        installment_service.apply_payment(credit_sale.installments[0].id, 1000)
        installment_service.apply_payment(credit_sale.installments[1].id, 100)

        items = installment_service.list_outstanding()

        assert [i["number"] for i in items] == [2, 3]
        assert items[0]["amount_cents"] == 900

    def test_overdue_flag(self, db_session, credit_sale):
        installment = db_session.get(Installment, credit_sale.installments[0].id)
        installment.due_date = today() - timedelta(days=1)
        db_session.commit()

        items = installment_service.list_outstanding()

        assert items[0]["is_overdue"] is True
        assert all(not i["is_overdue"] for i in items[1:])
