"""
Pytest fixtures for inventory API tests.

Provides an in-memory database, test client, users with bearer tokens, and
a seeded product.
"""

from decimal import Decimal

import pytest

from inventory_api import create_app
from inventory_api.extensions import db
from inventory_api.services import auth_service, products_service
from inventory_api.services.token_service import issue_token

TEST_PASSWORD = "Password123"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'JWT_SECRET_KEY': 'test-jwt-secret-key-with-enough-length-for-hs256',
    # Minimum cost factor keeps the suite fast
    'BCRYPT_ROUNDS': 4,
    'LOG_LEVEL': 'DEBUG',
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
def admin_user(db_session):
    return auth_service.register_user(
        username="admin",
        password=TEST_PASSWORD,
        email="admin@example.com",
        role="admin",
    )


@pytest.fixture(scope='function')
def regular_user(db_session):
    return auth_service.register_user(
        username="alice",
        password=TEST_PASSWORD,
        email="alice@example.com",
        phone="555-123-4567",
        role="user",
    )


@pytest.fixture(scope='function')
def other_user(db_session):
    return auth_service.register_user(
        username="bob",
        password=TEST_PASSWORD,
        email="bob@example.com",
        role="user",
    )


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(issue_token(admin_user))


@pytest.fixture(scope='function')
def user_headers(regular_user):
    return auth_headers(issue_token(regular_user))


@pytest.fixture(scope='function')
def widget(db_session):
    """WIDGET-1: price 9.99, on-hand 10."""
    return products_service.create_product(patch={
        "sku": "WIDGET-1",
        "name": "Blue Widget",
        "description": "Standard widget",
        "price": Decimal("9.99"),
        "quantity": 10,
    })


@pytest.fixture(scope='function')
def catalog(db_session):
    """A small catalog for filter tests."""
    specs = [
        ("GADGET-1", "Gadget Small", Decimal("5.00")),
        ("GADGET-2", "Gadget Large", Decimal("25.00")),
        ("WIDGET-9", "Widget 100% Cotton", Decimal("15.50")),
        ("TOOL-1", "Hammer", Decimal("40.00")),
    ]
    return [
        products_service.create_product(patch={"sku": sku, "name": name, "price": price})
        for sku, name, price in specs
    ]


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
