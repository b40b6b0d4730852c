"""
Audit trail for customer and address changes.

Every mutation is logged here, inside the same transaction as the change it
describes: if the change rolls back, so does its audit entry. The audit log
is append-only and captures old and new values.
"""

import json
from enum import Enum
from typing import Any

from clients.sqlite_client import SqliteClient, Transaction
from utils.timezone import db_now


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Compute changes between two entity states.

    Args:
        old: Previous state of entity
        new: New state of entity
        exclude_fields: Fields to ignore (defaults to {"updated_at"})

    Returns:
        Dict of {field: {"old": old_val, "new": new_val}} for changed fields.
        Empty dict if no changes.
    """
    exclude = exclude_fields or {"updated_at"}
    changes = {}

    for key in sorted(set(old.keys()) | set(new.keys())):
        if key in exclude:
            continue

        old_val = old.get(key)
        new_val = new.get(key)

        if old_val != new_val:
            changes[key] = {"old": old_val, "new": new_val}

    return changes


class AuditLogger:
    """
    Append-only audit trail.

    Always pass model_dump(mode="json") output so datetimes are already
    JSON-compatible strings.

    Usage:
        audit = AuditLogger(db)

        with db.transaction() as tx:
            ...
            audit.log_change(
                tx,
                entity_type="customer",
                entity_id=customer.id,
                action=AuditAction.CREATE,
                changes={"created": data.model_dump(mode="json", exclude_none=True)}
            )

        history = audit.get_entity_history("customer", customer.id)
    """

    def __init__(self, db: SqliteClient):
        self.db = db

    def log_change(
        self,
        tx: Transaction,
        entity_type: str,
        entity_id: int,
        action: AuditAction,
        changes: dict[str, Any],
    ) -> None:
        """
        Log an entity change as part of the caller's transaction.

        Changes format by action:
        - CREATE: {"created": {full entity data}}
        - UPDATE: {"field": {"old": old_val, "new": new_val}, ...}
        - DELETE: {"deleted": {full entity data at deletion}}
        """
        tx.execute(
            """
            INSERT INTO audit_log (entity_type, entity_id, action, changes, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (entity_type, entity_id, action.value, json.dumps(changes), db_now())
        )

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: int
    ) -> list[dict[str, Any]]:
        """
        Get full audit history for an entity.

        Returns:
            List of audit entries, newest first, with changes decoded.
        """
        rows = self.db.execute(
            """
            SELECT id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = ? AND entity_id = ?
            ORDER BY id DESC
            """,
            (entity_type, entity_id)
        )
        for row in rows:
            row["changes"] = json.loads(row["changes"])
        return rows
