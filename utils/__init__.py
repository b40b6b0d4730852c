"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_db_timestamp, db_now
from utils.logging import setup_logging
