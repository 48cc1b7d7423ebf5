import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from backoffice.extensions import db
from backoffice.models import CashEntry, Customer, Installment
from backoffice.services import ledger_service, sales_service
from backoffice.services.concurrency import run_in_transaction
from backoffice.services.sales_service import LineRequest
from backoffice.validation import ConflictError, StorageUnavailableError


def test_commits_on_success(db_session):
    def _op():
        db.session.add(Customer(name="Luis"))
        return "done"

    assert run_in_transaction(_op) == "done"
    db.session.rollback()
    assert db_session.query(Customer).count() == 1


def test_rolls_back_every_write_on_error(db_session):
    def _op():
        db.session.add(Customer(name="Luis"))
        db.session.flush()
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        run_in_transaction(_op)
    assert db_session.query(Customer).count() == 0


def test_connectivity_failure_becomes_storage_unavailable(db_session):
    def _op():
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    with pytest.raises(StorageUnavailableError):
        run_in_transaction(_op)


def test_version_conflict_becomes_conflict(db_session):
    def _op():
        raise StaleDataError("row changed")

    with pytest.raises(ConflictError):
        run_in_transaction(_op)


def test_failed_cash_post_inside_sale_rolls_back_stock(db_session, product, monkeypatch):
    def _broken(**kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(sales_service, "append_cash_entry", _broken)

    with pytest.raises(StorageUnavailableError):
        sales_service.register_sale(None, "cash", [LineRequest(product.id, 4)])

    assert db_session.get(type(product), product.id).stock == 10
    assert db_session.query(CashEntry).count() == 0
    assert db_session.query(Installment).count() == 0
    assert ledger_service.current_balance() == 0


def test_storage_down_is_503(auth_client, monkeypatch):
    client, headers = auth_client

    def _down():
        raise OperationalError("SELECT", {}, Exception("could not connect to server"))

    monkeypatch.setattr(ledger_service, "current_balance", _down)

    response = client.get('/api/cash/balance', headers=headers)
    assert response.status_code == 503
    assert response.json == {"error": "Data store unavailable"}
