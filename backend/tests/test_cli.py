import bcrypt

from backoffice.models import SessionToken
from backoffice.services import ledger_service
from backoffice.time_utils import utcnow


def test_hash_password_prints_bcrypt_hash(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['auth', 'hash-password', '--password', 'Drawer-Key-99'])

    assert result.exit_code == 0
    hashed = result.output.strip()
    assert bcrypt.checkpw(b'Drawer-Key-99', hashed.encode('utf-8'))


def test_hash_password_rejects_short_password(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['auth', 'hash-password', '--password', 'short'])

    assert result.exit_code != 0
    assert 'at least' in result.output


def test_cash_balance(app, db_session):
    ledger_service.post_entry('income', 4200, 'Float')

    result = app.test_cli_runner().invoke(args=['cash', 'balance'])

    assert result.exit_code == 0
    assert result.output.strip() == 'Gs. 4200'


def test_low_stock_listing(app, db_session, product, second_product):
    runner = app.test_cli_runner()

    result = runner.invoke(args=['catalog', 'low-stock'])
    assert result.exit_code == 0
    assert 'AZU-1KG' in result.output
    assert 'YER-1KG' not in result.output

    result = runner.invoke(args=['catalog', 'low-stock', '--threshold', '0'])
    assert 'No products below threshold.' in result.output


def test_purge_sessions(app, db_session):
    now = utcnow()
    db_session.add_all([
        SessionToken(username='admin', token_hash='a' * 64, expires_at=now.replace(year=now.year - 1)),
        SessionToken(username='admin', token_hash='b' * 64, expires_at=now.replace(year=now.year + 1)),
    ])
    db_session.commit()

    result = app.test_cli_runner().invoke(args=['system', 'purge-sessions'])

    assert result.exit_code == 0
    assert 'Removed 1 session(s)' in result.output
    assert db_session.query(SessionToken).count() == 1
