"""API test fixtures: TestClient over the real app and a temp-file store."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app
from core.config import AppConfig


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def config(db):
    return AppConfig(database_path=str(db.database_path))


@pytest.fixture
def app(config, db):
    """Full application: middleware, error handlers, and all routes."""
    return create_app(config, db=db)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


# =============================================================================
# REQUEST HELPERS
# =============================================================================


@pytest.fixture
def address_body():
    """JSON body for one address; override any field."""
    def build(**overrides):
        body = {
            "address_line1": "12 Oak St",
            "city": "Springfield",
            "state": "IL",
            "pin_code": "620001",
        }
        body.update(overrides)
        return body
    return build


@pytest.fixture
def customer_body():
    """JSON body for a customer; override any field."""
    def build(**overrides):
        body = {
            "first_name": "Ann",
            "last_name": "Lee",
            "phone_number": "5551112222",
        }
        body.update(overrides)
        return body
    return build


@pytest.fixture
def create_customer(client, customer_body):
    """POST a customer and return the created record."""
    def create(**overrides):
        response = client.post("/api/customers", json=customer_body(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return create
