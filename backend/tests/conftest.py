"""
Pytest fixtures for stockbook backend tests.

Provides an app on an in-memory database, a test client, a CLI runner and
plain catalog/ledger/builder objects for the core services.
"""

from datetime import date

import pytest
from stockbook import create_app
from stockbook.extensions import db
from stockbook.services.catalog_service import Catalog
from stockbook.services.draft_service import SaleBuilder
from stockbook.services.ledger_service import Ledger


TODAY = date(2024, 5, 17)


def fixed_clock():
    return TODAY


@pytest.fixture(scope='function')
def app():
    """Create application for testing, with a fresh tracker and schema."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STOCKBOOK_STORE': 'sql',
    })
    app.extensions["tracker"].clock = fixed_clock

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
def runner(app):
    """Create CLI runner."""
    return app.test_cli_runner()


@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def ledger():
    return Ledger()


@pytest.fixture
def builder():
    return SaleBuilder(clock=fixed_clock)


@pytest.fixture
def shirt(catalog):
    """Item 1: Shirt, 29.90, 10 in stock."""
    return catalog.add_or_update({"name": "Shirt", "category": "Tops", "price": "29.90", "quantity": "10"})


@pytest.fixture
def cap(catalog, shirt):
    """Item 2: Cap, 15.00, 3 in stock."""
    return catalog.add_or_update({"name": "Cap", "category": "Accessories", "price": "15", "quantity": "3"})
