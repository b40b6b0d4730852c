"""
Relational schema for the customer/address store.

Two entity tables plus the audit trail. Addresses CASCADE from their
customer. The partial unique index on primary addresses is the store-level
backstop for "at most one primary address per customer"; services still
clear the other primaries before setting one.
"""

import logging

from clients.sqlite_client import SqliteClient

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "India"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS customers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    phone_number TEXT NOT NULL UNIQUE,
    email TEXT UNIQUE,
    has_multiple_addresses INTEGER NOT NULL DEFAULT 0,
    only_one_address INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK (NOT (has_multiple_addresses AND only_one_address))
);

CREATE TABLE IF NOT EXISTS addresses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_id INTEGER NOT NULL REFERENCES customers (id) ON DELETE CASCADE,
    address_line1 TEXT NOT NULL,
    address_line2 TEXT,
    city TEXT NOT NULL,
    state TEXT NOT NULL,
    pin_code TEXT NOT NULL,
    country TEXT NOT NULL DEFAULT '{DEFAULT_COUNTRY}',
    is_primary INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_type TEXT NOT NULL,
    entity_id INTEGER NOT NULL,
    action TEXT NOT NULL,
    changes TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_customers_phone ON customers (phone_number);
CREATE INDEX IF NOT EXISTS idx_customers_email ON customers (email);
CREATE INDEX IF NOT EXISTS idx_addresses_customer_id ON addresses (customer_id);
CREATE INDEX IF NOT EXISTS idx_addresses_city ON addresses (city);
CREATE INDEX IF NOT EXISTS idx_addresses_state ON addresses (state);
CREATE INDEX IF NOT EXISTS idx_addresses_pin_code ON addresses (pin_code);
CREATE UNIQUE INDEX IF NOT EXISTS idx_addresses_one_primary
    ON addresses (customer_id) WHERE is_primary = 1;
CREATE INDEX IF NOT EXISTS idx_audit_log_entity ON audit_log (entity_type, entity_id);
"""


def initialize_schema(db: SqliteClient) -> None:
    """Create tables and indexes if they do not exist yet. Idempotent."""
    db.executescript(SCHEMA)
    logger.info("Database schema initialized")
