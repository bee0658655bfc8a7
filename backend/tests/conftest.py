"""
Pytest fixtures for recap backend tests.

Provides test database setup, tenant fixtures (two franchises and a super
admin), and test client helpers.
"""

from decimal import Decimal

import pytest
from recap import create_app
from recap.config import Config
from recap.extensions import db
from recap.models import Product, ROLE_SUPER_ADMIN
from recap.services.auth_service import create_user
from recap.services.franchise_service import create_franchise_account


PASSWORD = "Password123!"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DISPLAY_TIMEZONE = 'Asia/Jakarta'
    DEFAULT_ADMIN_FEE_PERCENT = '5'
    DEFAULT_FIXED_DEDUCTION = '1000'
    DEFAULT_PROFIT_SHARING_PERCENT = '10'
    ITEMS_PER_PAGE = 10


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
def super_admin(db_session):
    """Super admin account (no franchise)."""
    return create_user("admin@recap.local", PASSWORD, ROLE_SUPER_ADMIN)


@pytest.fixture(scope='function')
def franchise_a(db_session):
    """Franchise A (first tenant) with default settings."""
    return create_franchise_account(
        email="owner_a@recap.local",
        password=PASSWORD,
        name="Franchise A",
        profit_sharing_percent=10,
    )


@pytest.fixture(scope='function')
def franchise_b(db_session):
    """Franchise B (second tenant) with default settings."""
    return create_franchise_account(
        email="owner_b@recap.local",
        password=PASSWORD,
        name="Franchise B",
        profit_sharing_percent=20,
    )


@pytest.fixture(scope='function')
def product_a(db_session, franchise_a):
    """Product in Franchise A: price 250000, hpp 150000."""
    product = Product(
        franchise_id=franchise_a.id,
        name="Kopi Susu",
        code="KS-001",
        price=Decimal("250000"),
        hpp=Decimal("150000"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, franchise_b):
    """Product in Franchise B: price 100000, hpp 40000."""
    product = Product(
        franchise_id=franchise_b.id,
        name="Teh Manis",
        code="TM-001",
        price=Decimal("100000"),
        hpp=Decimal("40000"),
    )
    db_session.add(product)
    db_session.commit()
    return product


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
def admin_headers(client, super_admin):
    return auth_headers(get_auth_token(client, "admin@recap.local"))


@pytest.fixture(scope='function')
def headers_a(client, franchise_a):
    return auth_headers(get_auth_token(client, "owner_a@recap.local"))


@pytest.fixture(scope='function')
def headers_b(client, franchise_b):
    return auth_headers(get_auth_token(client, "owner_b@recap.local"))
