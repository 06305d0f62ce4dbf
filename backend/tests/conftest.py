"""
Pytest fixtures for kasir backend tests.

Provides test database setup, seed data fixtures, and test client.
"""

import pytest

from kasir import create_app
from kasir.extensions import db
from kasir.models import ProductType, UserRole
from kasir.services import digital_balance_service, products_service, users_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ACTING_USER_ID': 1,
        'BCRYPT_ROUNDS': 4,
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def acting_user(db_session):
    """The configured acting user (id 1) that writes are attributed to."""
    return users_service.create_user(
        patch={
            "username": "admin",
            "full_name": "Administrator",
            "password": "admin123",
            "role": UserRole.ADMIN,
        },
        user_id=1,
    )


def _product_patch(**overrides):
    patch = {
        "name": "Indomie Goreng",
        "sku": "IDM-001",
        "barcode": "8998866200301",
        "type": ProductType.PHYSICAL,
        "category": "Makanan",
        "cost_price_cents": 1000,
        "selling_price_cents": 1500,
        "stock_quantity": 100,
        "min_stock_alert": 10,
    }
    patch.update(overrides)
    return patch


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: create a product, overriding any default field."""
    def _make(**overrides):
        return products_service.create_product(patch=_product_patch(**overrides))
    return _make


@pytest.fixture(scope='function')
def physical_product(make_product):
    """Physical product: cost 10.00, sells at 15.00, 100 in stock."""
    return make_product()


@pytest.fixture(scope='function')
def digital_product(make_product):
    """Digital product (phone credit) backed by a 1000.00 balance."""
    product = make_product(
        name="Pulsa Telkomsel 10k",
        sku="PLS-TSEL-10",
        barcode=None,
        type=ProductType.DIGITAL,
        category="Pulsa",
        cost_price_cents=10000,
        selling_price_cents=11000,
        stock_quantity=0,
        min_stock_alert=None,
    )
    digital_balance_service.set_balance(product_id=product.id, balance_cents=100000)
    return product
