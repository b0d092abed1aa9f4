"""
Pytest fixtures for cafepos backend tests.

Provides an in-memory database, a clean terminal registry per test, menu
fixtures, and a test client that signs requests with a user id.
"""

import pytest
from cafepos import create_app
from cafepos.extensions import db
from cafepos.models import Category, Product
from cafepos.pos.checkout import CheckoutController
from cafepos.pos.terminals import Terminal, get_registry
from cafepos.decorators import USER_ID_HEADER


CASHIER_ID = "cashier-0001"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SETTLEMENT_MODE': 'atomic',
    })

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
        get_registry().clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def headers():
    """Identity headers for the default cashier."""
    return {USER_ID_HEADER: CASHIER_ID}


@pytest.fixture(scope='function')
def coffee(db_session):
    category = Category(name="Coffee")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def pastries(db_session):
    category = Category(name="Pastries")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def latte(db_session, coffee):
    """Cafe Latte, 120.00, five in stock."""
    product = Product(name="Cafe Latte", category_id=coffee.id, price_cents=12000, stock=5, status="available")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def croissant(db_session, pastries):
    """Butter Croissant, 85.50, two in stock."""
    product = Product(name="Butter Croissant", category_id=pastries.id, price_cents=8550, stock=2, status="available")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def sold_out(db_session, coffee):
    product = Product(name="Cold Brew", category_id=coffee.id, price_cents=15000, stock=0, status="available")
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def terminal(db_session):
    """A register terminal outside the registry, for driving settlement directly."""
    return Terminal(user_id=CASHIER_ID, controller=CheckoutController())

