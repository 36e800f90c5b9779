"""
Test configuration and fixtures.

Settings are read from the environment when productsaas is first imported,
so the test environment is set up before any application import.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYPAL_VERIFY_IPN"] = "True"
os.environ["COUPON_REDEEM_ON"] = "apply"
os.environ["FRONTEND_BASE_URL"] = "https://shop.example.com"
os.environ["BACKEND_BASE_URL"] = "https://api.example.com"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from productsaas.database.connection import SessionLocal, create_tables, drop_tables  # noqa: E402
from productsaas.main import app  # noqa: E402
from api_helpers import DEFAULT_PASSWORD, PAYPAL_EMAIL, SELLER_EMAIL, SELLER_USERNAME, auth_headers, register  # noqa: E402


@pytest.fixture
def db():
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def client(db):
    return TestClient(app)


@pytest.fixture
def seller_headers(client):
    return auth_headers(register(client, SELLER_EMAIL, SELLER_USERNAME)["access_token"])


@pytest.fixture
def paypal_seller(client, seller_headers):
    """A seller whose settings carry a PayPal email"""
    resp = client.put(
        "/api/settings/",
        json={"currency": "USD", "paypal_email": PAYPAL_EMAIL},
        headers=seller_headers,
    )
    assert resp.status_code == 200, resp.text
    return seller_headers


@pytest.fixture
def admin_headers(client):
    resp = client.post(
        "/api/admin/setup-admin",
        json={"email": "admin@example.com", "username": "root-admin", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 201, resp.text
    login = client.post("/api/auth/login", json={"email": "admin@example.com", "password": DEFAULT_PASSWORD})
    return auth_headers(login.json()["access_token"])


@pytest.fixture
def create_product(client):
    def _create(headers, **overrides):
        payload = {
            "title": "Logo Design Pack",
            "description": "Ten logo concepts",
            "price": "49.99",
            "type": "Digital",
            "payment_gateways": ["paypal"],
        }
        payload.update(overrides)
        resp = client.post("/api/products/", json=payload, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _create


@pytest.fixture
def create_coupon(client):
    def _create(headers, **overrides):
        payload = {"code": "save20", "discount_type": "percentage", "discount_value": "20"}
        payload.update(overrides)
        resp = client.post("/api/coupons/", json=payload, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _create
