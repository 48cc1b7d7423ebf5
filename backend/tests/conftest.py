"""
Pytest fixtures for the back office tests.

Provides an in-memory SQLite application, a per-test clean database,
catalog fixtures and an authenticated test client.
"""

import bcrypt
import pytest

from backoffice import create_app
from backoffice.config import Config
from backoffice.extensions import db
from backoffice.models import Customer, Product


ADMIN_PASSWORD = "Counter-Pass-2024"


class BackofficeTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ADMIN_USERNAME = "admin"
    # Low cost factor keeps the suite fast
    ADMIN_PASSWORD_HASH = bcrypt.hashpw(ADMIN_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
    SESSION_TTL_HOURS = 1
    INSTALLMENT_COUNT_DEFAULT = 1
    INSTALLMENT_FIRST_DUE_DAYS = 22
    INSTALLMENT_INTERVAL_DAYS = 30
    LOW_STOCK_THRESHOLD = 5


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(BackofficeTestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def customer(db_session):
    """Counter customer."""
    c = Customer(name="Ana Benítez", category="counter", document="4512333", phone="0981 111 222")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def wholesale_customer(db_session):
    c = Customer(name="Almacén Don Pedro", category="wholesale", document="80012345-6")
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def product(db_session):
    """Product P: stock 10, unit price 1000, wholesale 800, cost 600."""
    p = Product(
        name="Yerba 1kg",
        category="Almacén",
        code="YER-1KG",
        price_cents=1000,
        wholesale_price_cents=800,
        unit_cost_cents=600,
        stock=10,
    )
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def second_product(db_session):
    p = Product(name="Azúcar 1kg", category="Almacén", code="AZU-1KG", price_cents=500, stock=3)
    db_session.add(p)
    db_session.commit()
    return p


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def auth_client(client, db_session):
    """Test client plus a valid bearer header, as (client, headers)."""
    response = client.post('/api/auth/login', json={'username': 'admin', 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client, auth_headers(response.json['token'])
