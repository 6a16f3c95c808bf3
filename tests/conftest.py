"""Pytest configuration for tests.

The app is pointed at a shared in-memory SQLite database before any
``phoneshop`` module is imported; tables are recreated for every test.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")

import pytest
from fastapi.testclient import TestClient

from phoneshop.api.routes.auth import login_rate_limiter
from phoneshop.db.database import Base, SessionLocal, engine, init_db
from phoneshop.main import app
from phoneshop.services.events import events
from phoneshop.services.scanner import scan_registry

OWNER_PASSWORD = "owner-password-1"
STAFF_PASSWORD = "staff-password-1"


# Force anyio to use only asyncio backend (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def fresh_database():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)
    login_rate_limiter._attempts.clear()
    scan_registry._by_user.clear()
    events.clear()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


def signup_and_login(client: TestClient, email: str, username: str, password: str) -> dict[str, str]:
    response = client.post("/auth/signup", json={"email": email, "username": username, "password": password})
    assert response.status_code == 201, response.text
    response = client.post("/auth/login", json={"identity": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def owner_headers(client):
    return signup_and_login(client, "owner@example.com", "owner", OWNER_PASSWORD)


@pytest.fixture
def staff_headers(client, owner_headers):
    return signup_and_login(client, "staff@example.com", "staff", STAFF_PASSWORD)


@pytest.fixture
def add_product(client, owner_headers):
    def _add(brand: str, model: str, location: str, quantity: int = 1, location_type: str = "bundle") -> dict:
        response = client.post(
            "/inventory/products",
            json={
                "brand": brand,
                "model": model,
                "stock_quantity": quantity,
                "location_type": location_type,
                "location_number": location,
            },
            headers=owner_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add
