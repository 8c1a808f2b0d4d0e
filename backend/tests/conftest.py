"""
Pytest fixtures for shopledger backend tests.

Provides a file-backed SQLite database per test, account and product
fixtures, and test client helpers.
"""

import pytest

from shopledger import create_app
from shopledger.extensions import db
from shopledger.models import Product
from shopledger.permissions import Actor
from shopledger.services import auth_service

PASSWORD = "Password123!"


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing, one database file per test."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'test.sqlite3'}",
        'BCRYPT_ROUNDS': 4,
        'LEDGER_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def owner(db_session):
    return auth_service.create_owner("owner@shop.test", PASSWORD, "Olive Owner")


@pytest.fixture(scope='function')
def cashier(db_session):
    return auth_service.create_cashier("cashier@shop.test", PASSWORD, "Cal Cashier")


@pytest.fixture(scope='function')
def owner_actor(owner):
    return Actor(id=owner.id, role=owner.role)


@pytest.fixture(scope='function')
def cashier_actor(cashier):
    return Actor(id=cashier.id, role=cashier.role)


@pytest.fixture(scope='function')
def product(db_session):
    """Five units at 10.00, inserted directly (no activity entry)."""
    p = Product(name="Widget", price_cents=1000, stock_quantity=5)
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def products(db_session):
    items = [
        Product(name="Coffee", price_cents=350, stock_quantity=40),
        Product(name="Bagel", price_cents=225, stock_quantity=12),
        Product(name="Juice", price_cents=499, stock_quantity=0),
    ]
    db_session.add_all(items)
    db_session.commit()
    return items


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(client, owner):
    return auth_headers(get_auth_token(client, owner.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier):
    return auth_headers(get_auth_token(client, cashier.email))
