"""
Address service for CRUD operations.

Addresses are owned by a customer and never move between customers.
Addresses are hard-deleted (not soft) since they CASCADE from customer.
Every write keeps the owner's primary exclusivity and derived address flags
consistent within the same transaction.
"""

import logging

from clients.sqlite_client import LIKE_ESCAPE, SqliteClient, contains_pattern
from core.audit import AuditLogger, AuditAction, compute_changes
from core.exceptions import AddressNotFoundError, CustomerNotFoundError
from core.models import (
    Address,
    AddressCreate,
    AddressQuery,
    AddressUpdate,
    AddressWithOwner,
)
from core.schema import DEFAULT_COUNTRY
from core.services.address_consistency import (
    clear_other_primaries,
    insert_address,
    recompute_address_flags,
)
from utils.timezone import db_now

logger = logging.getLogger(__name__)

_WITH_OWNER = """
    SELECT
        a.*,
        c.first_name,
        c.last_name,
        c.phone_number,
        c.email
    FROM addresses a
    LEFT JOIN customers c ON a.customer_id = c.id
"""


class AddressService:
    """Service for address operations."""

    def __init__(self, db: SqliteClient, audit: AuditLogger):
        self.db = db
        self.audit = audit

    def create(self, data: AddressCreate) -> Address:
        """
        Create a new address for an existing customer.

        Args:
            data: Address creation data including customer_id

        Returns:
            Created address

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        now = db_now()

        with self.db.transaction() as tx:
            owner = tx.execute_scalar(
                "SELECT id FROM customers WHERE id = ?",
                (data.customer_id,)
            )
            if owner is None:
                raise CustomerNotFoundError(data.customer_id)

            row = insert_address(tx, data.customer_id, data, now)
            recompute_address_flags(tx, data.customer_id)

            address = Address.model_validate(row)

            self.audit.log_change(
                tx,
                entity_type="address",
                entity_id=address.id,
                action=AuditAction.CREATE,
                changes={"created": data.model_dump(mode="json", exclude_none=True)}
            )

        logger.info(f"Created address {address.id} for customer {address.customer_id}")
        return address

    def get_by_id(self, address_id: int) -> AddressWithOwner | None:
        """
        Get address by ID, joined with its owner's contact fields.

        Returns:
            Address if found, None otherwise.
        """
        row = self.db.execute_single(
            f"{_WITH_OWNER} WHERE a.id = ?",
            (address_id,)
        )

        if row is None:
            return None

        return AddressWithOwner.model_validate(row)

    def list_for_customer(self, customer_id: int) -> list[AddressWithOwner]:
        """
        List all addresses for a customer.

        Returns:
            List of addresses, primary first then by created_at

        Raises:
            CustomerNotFoundError: If the customer does not exist
        """
        exists = self.db.execute_scalar(
            "SELECT id FROM customers WHERE id = ?",
            (customer_id,)
        )
        if exists is None:
            raise CustomerNotFoundError(customer_id)

        rows = self.db.execute(
            f"""
            {_WITH_OWNER}
            WHERE a.customer_id = ?
            ORDER BY a.is_primary DESC, a.created_at ASC, a.id ASC
            """,
            (customer_id,)
        )

        return [AddressWithOwner.model_validate(row) for row in rows]

    def list_addresses(self, query: AddressQuery) -> tuple[list[AddressWithOwner], int]:
        """
        List addresses with owner fields, filtered, sorted and paginated.

        Returns:
            (page of addresses, total matching addresses)
        """
        clauses = []
        params = []

        if query.customer_id is not None:
            clauses.append("a.customer_id = ?")
            params.append(query.customer_id)

        for column in ("city", "state", "pin_code"):
            value = getattr(query, column)
            if value:
                clauses.append(f"a.{column} LIKE ? {LIKE_ESCAPE}")
                params.append(contains_pattern(value))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        total = self.db.execute_scalar(
            f"SELECT COUNT(*) FROM addresses a {where}",
            tuple(params)
        )

        # sort/order come from allow-listed values only
        direction = query.order.value.upper()
        rows = self.db.execute(
            f"""
            {_WITH_OWNER}
            {where}
            ORDER BY a.{query.sort} {direction}, a.id {direction}
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (query.limit, query.offset)
        )

        return [AddressWithOwner.model_validate(row) for row in rows], total

    def update(self, address_id: int, data: AddressUpdate) -> Address:
        """
        Replace an address's editable fields.

        The owner is taken from the stored row. Setting is_primary clears it
        on the owner's other addresses; clearing it touches nothing else.

        Args:
            address_id: Address ID
            data: Full replacement fields

        Returns:
            Updated address

        Raises:
            AddressNotFoundError: If address not found
        """
        with self.db.transaction() as tx:
            current_row = tx.execute_single(
                "SELECT * FROM addresses WHERE id = ?",
                (address_id,)
            )
            if current_row is None:
                raise AddressNotFoundError(address_id)
            current = Address.model_validate(current_row)

            if data.is_primary:
                clear_other_primaries(tx, current.customer_id, exclude_address_id=address_id)

            row = tx.execute_returning(
                """
                UPDATE addresses
                SET address_line1 = ?, address_line2 = ?, city = ?, state = ?,
                    pin_code = ?, country = ?, is_primary = ?, updated_at = ?
                WHERE id = ?
                RETURNING *
                """,
                (
                    data.address_line1, data.address_line2, data.city, data.state,
                    data.pin_code, data.country or DEFAULT_COUNTRY, data.is_primary,
                    db_now(), address_id
                )
            )[0]
            recompute_address_flags(tx, current.customer_id)

            updated = Address.model_validate(row)

            changes = compute_changes(
                current.model_dump(mode="json"),
                updated.model_dump(mode="json")
            )
            if changes:
                self.audit.log_change(
                    tx,
                    entity_type="address",
                    entity_id=address_id,
                    action=AuditAction.UPDATE,
                    changes=changes
                )

        return updated

    def delete(self, address_id: int) -> bool:
        """
        Hard delete an address.

        The owner keeps no primary if this was its primary address; no other
        address is promoted.

        Returns:
            True if deleted, False if not found
        """
        with self.db.transaction() as tx:
            row = tx.execute_single(
                "DELETE FROM addresses WHERE id = ? RETURNING *",
                (address_id,)
            )
            if row is None:
                return False

            deleted = Address.model_validate(row)
            recompute_address_flags(tx, deleted.customer_id)

            self.audit.log_change(
                tx,
                entity_type="address",
                entity_id=address_id,
                action=AuditAction.DELETE,
                changes={"deleted": deleted.model_dump(mode="json")}
            )

        logger.info(f"Deleted address {address_id} of customer {deleted.customer_id}")
        return True
