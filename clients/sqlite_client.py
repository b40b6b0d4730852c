"""
SQLite client for the embedded customer/address store.

Every call opens its own connection with foreign keys enabled, so instances
are safe to share across request threads. Multi-statement writes go through
transaction(), which opens the transaction with BEGIN IMMEDIATE: the write
lock is taken up front, so a second writer waits (up to the busy timeout)
instead of interleaving between a precondition check and the write that
depends on it.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

logger = logging.getLogger(__name__)

Params = Sequence[Any] | Dict[str, Any] | None

# Follows each LIKE ? whose pattern comes from contains_pattern()
LIKE_ESCAPE = "ESCAPE '\\'"


def contains_pattern(value: str) -> str:
    """LIKE pattern matching value anywhere, with % and _ taken literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Transaction:
    """
    Query surface bound to one open connection inside BEGIN ... COMMIT.

    Mirrors the SqliteClient query helpers so service code reads the same
    whether or not it runs inside a transaction. Never commits on its own.
    """

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        cur = self._conn.execute(query, params or ())
        if cur.description:
            return [dict(row) for row in cur.fetchall()]
        return []

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """Execute query, return first value of first row or None."""
        row = self._conn.execute(query, params or ()).fetchone()
        return row[0] if row else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE/DELETE with RETURNING, return results."""
        return self.execute(query, params)

    def rowcount(self, query: str, params: Params = None) -> int:
        """Execute a write without RETURNING, return number of affected rows."""
        return self._conn.execute(query, params or ()).rowcount


class SqliteClient:
    """
    SQLite client with per-call connections and explicit write transactions.

    Usage:
        db = SqliteClient("customer_crud.db")

        # Single statement, autocommit
        rows = db.execute("SELECT * FROM customers")

        # Read-check-write sequence as one unit of work
        with db.transaction() as tx:
            tx.execute("UPDATE addresses SET is_primary = 0 WHERE customer_id = ?", (1,))
            tx.execute_returning("INSERT INTO addresses (...) VALUES (...) RETURNING *", (...))
    """

    def __init__(self, database_path: str | Path, busy_timeout_seconds: float = 30.0):
        self._database_path = str(database_path)
        self._busy_timeout = busy_timeout_seconds

    @property
    def database_path(self) -> str:
        return self._database_path

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: no implicit BEGIN, transactions are explicit
        conn = sqlite3.connect(
            self._database_path,
            timeout=self._busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a fresh connection with foreign keys enforced."""
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """
        Run a block as one atomic unit of work.

        Commits when the block exits normally, rolls back and re-raises on
        any exception. Nothing written inside the block is visible to other
        connections until commit.
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield Transaction(conn)
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        with self.get_connection() as conn:
            cur = conn.execute(query, params or ())
            if cur.description:
                return [dict(row) for row in cur.fetchall()]
            return []

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_scalar(self, query: str, params: Params = None) -> Any:
        """Execute query, return first value of first row or None."""
        with self.get_connection() as conn:
            row = conn.execute(query, params or ()).fetchone()
            return row[0] if row else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Execute a single write with RETURNING in its own transaction."""
        with self.transaction() as tx:
            return tx.execute_returning(query, params)

    def executescript(self, script: str) -> None:
        """Run a multi-statement DDL script."""
        with self.get_connection() as conn:
            conn.executescript(script)
        logger.info(f"Schema script applied to {self._database_path}")
