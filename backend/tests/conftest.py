"""
Pytest fixtures for stockroom backend tests.

Provides an in-memory app, per-test table cleanup, seed data factories,
a recording notification sender, and bearer-token helpers.
"""

import itertools
from decimal import Decimal

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import Location, Product, Supplier, User
from stockroom.services import session_service
from stockroom.services.auth_service import hash_password

TEST_PASSWORD = "Password123"


class RecordingSender:
    """Notification sender that remembers what it was asked to send."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.sent = []
        self.deliver = True
        self.fail_with = None

    def send(self, target, subject, body):
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((target, subject, body))
        return self.deliver


SENDER = RecordingSender()

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'LOW_STOCK_ALERT_COOLDOWN_HOURS': 24,
    'LOW_STOCK_ALERT_RECIPIENT': 'alerts@test.local',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG, notification_sender=SENDER)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(autouse=True)
def sender():
    SENDER.reset()
    return SENDER


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

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def location(db_session):
    loc = Location(name="Main Stockroom", address="Back of store")
    db_session.add(loc)
    db_session.commit()
    return loc


@pytest.fixture(scope='function')
def supplier(db_session):
    sup = Supplier(name="Acme Wholesale", email="orders@acme.test")
    db_session.add(sup)
    db_session.commit()
    return sup


@pytest.fixture(scope='function')
def make_product(db_session, location):
    """
    Factory for products inserted directly (no audit rows).

    Defaults: electronics at 10.00, quantity 10, min_stock_level 0.
    """
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        fields = {
            "name": f"Product {n}",
            "barcode": f"INT{n:07d}",
            "category": "electronics",
            "price": Decimal("10.00"),
            "quantity": 10,
            "min_stock_level": 0,
            "location_id": location.id,
        }
        fields.update(overrides)
        product = Product(**fields)
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is deliberately slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


def _make_user(db_session, password_hash, role):
    user = User(username=f"{role}_user", email=f"{role}@test.local", password_hash=password_hash, role=role)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "admin")


@pytest.fixture(scope='function')
def manager_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "manager")


@pytest.fixture(scope='function')
def staff_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "staff")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    _, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return headers_for(admin_user)


@pytest.fixture(scope='function')
def manager_headers(manager_user):
    return headers_for(manager_user)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return headers_for(staff_user)
