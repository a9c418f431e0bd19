"""
Pytest configuration and fixtures.
"""
from decimal import Decimal

import pytest

from storefront import create_app
from storefront.config import TestingConfig
from storefront.extensions import db
from storefront.model import Product


@pytest.fixture
def app():
    """Application bound to a fresh in-memory database, context pushed."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def cart(app):
    return app.extensions["cart_service"]


@pytest.fixture
def checkout(app):
    return app.extensions["checkout_service"]


@pytest.fixture
def make_product(app):
    """Create and commit a catalog product."""
    def _make(name="Widget", price="10.00", **kwargs):
        product = Product(name=name, price=Decimal(price), **kwargs)
        db.session.add(product)
        db.session.commit()
        return product
    return _make
