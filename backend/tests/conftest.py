"""
Pytest fixtures for wholesale backend tests.

Provides test database setup, catalog/order fixtures, and test client.
"""

from decimal import Decimal

import pytest
from wholesale import create_app
from wholesale.extensions import db
from wholesale.models import Category, Product, VendorPriceOverride, BulkPriceOverride
from wholesale.services import order_service

DISTRIBUTOR_ID = 1
VENDOR_ID = 7
OTHER_VENDOR_ID = 8


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'INVOICE_NUMBER_PREFIX': 'INV',
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
def category(db_session):
    cat = Category(distributor_id=DISTRIBUTOR_ID, name="Snacks")
    db_session.add(cat)
    db_session.commit()
    return cat


@pytest.fixture(scope='function')
def chips(db_session, category):
    """Sold by piece ($1.10) and by case of 12 ($12.00)."""
    product = Product(
        distributor_id=DISTRIBUTOR_ID,
        category_id=category.id,
        name="Sea Salt Chips",
        item_code="CH-001",
        sell_per_unit=Decimal("1.10"),
        sell_per_case=Decimal("12.00"),
        units_per_case=12,
        allow_piece=True,
        allow_case=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def soda_piece_only_price(db_session, category):
    """Case ordering allowed, but only a piece price is set."""
    product = Product(
        distributor_id=DISTRIBUTOR_ID,
        category_id=category.id,
        name="Cola 355ml",
        sell_per_unit=Decimal("0.85"),
        units_per_case=24,
        allow_piece=True,
        allow_case=True,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def chips_vendor_case_override(db_session, chips):
    override = VendorPriceOverride(
        distributor_id=DISTRIBUTOR_ID,
        vendor_id=VENDOR_ID,
        product_id=chips.id,
        price_per_case=Decimal("11.00"),
    )
    db_session.add(override)
    db_session.commit()
    return override


@pytest.fixture(scope='function')
def chips_bulk_override(db_session, chips):
    override = BulkPriceOverride(
        distributor_id=DISTRIBUTOR_ID,
        product_id=chips.id,
        price_per_unit=Decimal("1.00"),
        price_per_case=Decimal("11.50"),
    )
    db_session.add(override)
    db_session.commit()
    return override


@pytest.fixture(scope='function')
def order(db_session):
    return order_service.create_order(DISTRIBUTOR_ID, VENDOR_ID)
