"""
Pytest fixtures for the back-office tests.

Provides the application on an in-memory database, a clean database per
test, and small factories for the documents most tests start from.
"""

import pytest
from tamweel import create_app
from tamweel.collections import REPRESENTATIVES, USERS
from tamweel.extensions import db
from tamweel.services import document_store


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'STORE_RETRY_ATTEMPTS': 3,
    'STORE_RETRY_BACKOFF': 0,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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
def user_u1(db_session):
    """Customer U1 with no orders."""
    document_store.insert(USERS, {
        "name": "Customer One",
        "username": "u1",
        "phone": "0910000001",
        "password": "secret",
        "debt": 0,
        "orderCount": 0,
        "orderCounter": 0,
    }, doc_id="U1")
    return "U1"


@pytest.fixture(scope='function')
def rep_r1(db_session):
    document_store.insert(REPRESENTATIVES, {"name": "Rep One", "username": "r1", "assignedOrders": 0}, doc_id="R1")
    return {"id": "R1", "name": "Rep One"}


@pytest.fixture(scope='function')
def rep_r2(db_session):
    document_store.insert(REPRESENTATIVES, {"name": "Rep Two", "username": "r2", "assignedOrders": 0}, doc_id="R2")
    return {"id": "R2", "name": "Rep Two"}


@pytest.fixture
def order_input():
    """Factory for order input as the UI submits it."""
    def make(user_id: str, selling: float = 1000, down: float = 0, **extra) -> dict:
        data = {
            "userId": user_id,
            "customerName": "Customer One",
            "customerPhone": "0910000001",
            "operationDate": "2026-01-01T10:00:00.000Z",
            "sellingPriceLYD": selling,
            "downPaymentLYD": down,
            "status": "pending",
        }
        data.update(extra)
        return data

    return make
