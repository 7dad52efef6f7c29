"""
Pytest fixtures for the boutique backend tests.

Provides an in-memory database, a per-test clean slate, the test client and
seed data (settings, shop, stock group).
"""

from decimal import Decimal

import pytest

from boutique import create_app
from boutique.extensions import db
from boutique.models import Shop
from boutique.services import catalog_service, settings_service
from boutique.services.inventory_service import InventoryStore
from boutique.services.settings_service import PricingConfig


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CSV_INCLUDE_BOM': True,
        'LOW_STOCK_THRESHOLD': 2,
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

        db.session.rollback()


@pytest.fixture
def pricing_config():
    """7% tax, THB default, 1 THB = 120 MMK."""
    return PricingConfig(
        tax_rate=Decimal("7"),
        default_currency="THB",
        conversion_rate=Decimal("120"),
    )


@pytest.fixture
def stock_doc():
    """A serialized stock group for database-free inventory and cart tests."""
    return {
        "id": 1,
        "group_name": "Linen Shirt",
        "unit_price": 100.0,
        "original_price": 60.0,
        "shop": "Main Shop",
        "color_variants": [
            {
                "id": 11,
                "color": "Red",
                "color_code": "#FF0000",
                "barcode": "885000000011",
                "size_quantities": [
                    {"size": "M", "quantity": 5},
                    {"size": "L", "quantity": 3},
                ],
            },
            {
                "id": 12,
                "color": "Blue",
                "color_code": "#0000FF",
                "barcode": None,
                "size_quantities": [{"size": "M", "quantity": 2}],
            },
        ],
        "wholesale_tiers": [{"min_quantity": 3, "price": 80.0}],
    }


@pytest.fixture
def second_stock_doc():
    return {
        "id": 2,
        "group_name": "Denim Skirt",
        "unit_price": 250.0,
        "original_price": 300.0,
        "shop": "Main Shop",
        "color_variants": [
            {
                "id": 21,
                "color": "Black",
                "color_code": "#000000",
                "barcode": None,
                "size_quantities": [{"size": "S", "quantity": 4}],
            },
        ],
        "wholesale_tiers": [],
    }


@pytest.fixture
def inventory(stock_doc, second_stock_doc):
    """In-memory inventory without persistence."""
    return InventoryStore([stock_doc, second_stock_doc])


@pytest.fixture(scope='function')
def settings(db_session):
    """Business settings: THB default, 7% tax, 1 THB = 120 MMK."""
    row = settings_service.get_business_settings()
    row.tax_rate = Decimal("7")
    row.default_currency = "THB"
    row.currency_rate = Decimal("120")
    row.current_branch = "Main Shop"
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def shop(db_session):
    row = Shop(name="Main Shop", location="Bangkok", status="active")
    db_session.add(row)
    db_session.commit()
    return row


@pytest.fixture(scope='function')
def stock_group(db_session, shop):
    """Linen Shirt: Red M=5 L=3, Blue M=2; wholesale 3 for 80 each."""
    return catalog_service.create_stock({
        "group_name": "Linen Shirt",
        "unit_price": "100.00",
        "original_price": "60.00",
        "category": "Tops",
        "shop": shop.name,
        "color_variants": [
            {
                "color": "Red",
                "color_code": "#FF0000",
                "barcode": "885000000011",
                "size_quantities": [{"size": "M", "quantity": 5}, {"size": "L", "quantity": 3}],
            },
            {
                "color": "Blue",
                "color_code": "#0000FF",
                "size_quantities": [{"size": "M", "quantity": 2}],
            },
        ],
        "wholesale_tiers": [{"min_quantity": 3, "price": "80.00"}],
    })


@pytest.fixture
def read_quantity(db_session):
    """Read a size quantity straight from the database."""
    def _read(stock_id: int, color: str, size: str) -> int:
        db.session.expire_all()
        stock = catalog_service.get_stock(stock_id)
        for variant in stock.color_variants:
            if variant.color.lower() == color.lower():
                for sq in variant.size_quantities:
                    if sq.size == size:
                        return sq.quantity
        raise AssertionError(f"{color}/{size} not found on stock {stock_id}")
    return _read
