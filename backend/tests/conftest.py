"""
Pytest fixtures for cafe_pos backend tests.

Provides an in-memory application, a wiped database per test, a test client
and small factories for staff and stock items.
"""

import pytest
from cafe_pos import create_app
from cafe_pos.extensions import db, error_tracker
from cafe_pos.services import staff_service, inventory_ledger


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
    })

    with app.app_context():
        db.create_all()
        yield app
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
        error_tracker.reset()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_staff(db_session):
    """Factory: create a staff member (PIN 1234 unless given)."""
    def _make(name="Ana Reyes", position="Barista", daily_rate_cents=80000, pin="1234", **extra):
        return staff_service.create_staff(
            name=name,
            position=position,
            daily_rate_cents=daily_rate_cents,
            pin=pin,
            **extra,
        )
    return _make


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory: create a stock item with optional opening batches."""
    def _make(name="Whole Milk", batches=(), **fields):
        values = {
            "name": name,
            "category": "Ingredients",
            "unit": "liters",
            "cost_cents": 9000,
            "price_cents": 12000,
            "vendor": "Dairy Co",
        }
        values.update(fields)
        return inventory_ledger.create_item(values, list(batches))
    return _make
