"""Shared test fixtures for the customer/address test suite."""

import pytest

from clients.sqlite_client import SqliteClient
from core.audit import AuditLogger
from core.models import AddressFields, CustomerCreate
from core.schema import initialize_schema


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def db(tmp_path):
    """Fresh SqliteClient per test, schema applied, on a temp file."""
    client = SqliteClient(tmp_path / "test.db", busy_timeout_seconds=5)
    initialize_schema(client)
    return client


@pytest.fixture
def audit(db):
    return AuditLogger(db)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def customer_service(db, audit):
    from core.services.customer_service import CustomerService
    return CustomerService(db, audit)


@pytest.fixture
def address_service(db, audit):
    from core.services.address_service import AddressService
    return AddressService(db, audit)


# =============================================================================
# PAYLOAD BUILDERS
# =============================================================================


def make_address(**overrides) -> AddressFields:
    """Valid address payload; override any field."""
    fields = {
        "address_line1": "12 Oak St",
        "city": "Springfield",
        "state": "IL",
        "pin_code": "620001",
    }
    fields.update(overrides)
    return AddressFields(**fields)


def make_customer(**overrides) -> CustomerCreate:
    """Valid customer payload; override any field."""
    fields = {
        "first_name": "Ann",
        "last_name": "Lee",
        "phone_number": "5551112222",
    }
    fields.update(overrides)
    return CustomerCreate(**fields)


@pytest.fixture
def address_payload():
    return make_address


@pytest.fixture
def customer_payload():
    return make_customer


# =============================================================================
# STORE INSPECTION
# =============================================================================


@pytest.fixture
def primary_count(db):
    """Number of primary addresses a customer has, read straight from the store."""
    def count(customer_id: int) -> int:
        return db.execute_scalar(
            "SELECT COUNT(*) FROM addresses WHERE customer_id = ? AND is_primary = 1",
            (customer_id,)
        )
    return count


@pytest.fixture
def stored_flags(db):
    """(has_multiple_addresses, only_one_address) as stored for a customer."""
    def flags(customer_id: int) -> tuple[bool, bool]:
        row = db.execute_single(
            "SELECT has_multiple_addresses, only_one_address FROM customers WHERE id = ?",
            (customer_id,)
        )
        return bool(row["has_multiple_addresses"]), bool(row["only_one_address"])
    return flags
