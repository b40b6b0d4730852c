"""
Customer service for CRUD operations.

Handles the customer aggregate: the customer row plus the addresses it owns.
Creates and updates that carry an address list write the addresses in the
same transaction and finish by recomputing the derived address flags.
Deletes are hard deletes; addresses CASCADE.
"""

import logging
from typing import Any

from clients.sqlite_client import LIKE_ESCAPE, SqliteClient, Transaction, contains_pattern
from core.audit import AuditLogger, AuditAction, compute_changes
from core.exceptions import CustomerNotFoundError, DuplicateFieldError
from core.models import (
    Address,
    Customer,
    CustomerCreate,
    CustomerQuery,
    CustomerUpdate,
    CustomerWithAddresses,
)
from core.services.address_consistency import (
    delete_all_addresses,
    insert_address,
    recompute_address_flags,
)
from utils.timezone import db_now

logger = logging.getLogger(__name__)

_SEARCH_COLUMNS = ("first_name", "last_name", "phone_number", "email")


class CustomerService:
    """Service for customer operations."""

    def __init__(self, db: SqliteClient, audit: AuditLogger):
        self.db = db
        self.audit = audit

    def _check_unique(
        self,
        tx: Transaction,
        data: CustomerCreate,
        exclude_id: int | None = None
    ) -> None:
        """Phone first, then email (only when given). Raises DuplicateFieldError."""
        checks = [("phone_number", data.phone_number)]
        if data.email:
            checks.append(("email", data.email))

        for field, value in checks:
            if exclude_id is None:
                existing = tx.execute_scalar(
                    f"SELECT id FROM customers WHERE {field} = ?",
                    (value,)
                )
            else:
                existing = tx.execute_scalar(
                    f"SELECT id FROM customers WHERE {field} = ? AND id != ?",
                    (value, exclude_id)
                )
            if existing is not None:
                raise DuplicateFieldError(field, value)

    def create(self, data: CustomerCreate) -> Customer:
        """
        Create a customer and its initial addresses as one unit of work.

        Args:
            data: Customer fields plus an optional address list

        Returns:
            Created customer, with derived flags already computed

        Raises:
            DuplicateFieldError: If the phone number or email is taken
        """
        now = db_now()

        with self.db.transaction() as tx:
            self._check_unique(tx, data)

            row = tx.execute_returning(
                """
                INSERT INTO customers (
                    first_name, last_name, phone_number, email,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                RETURNING *
                """,
                (data.first_name, data.last_name, data.phone_number, data.email, now, now)
            )[0]
            customer_id = row["id"]

            for address in data.addresses or []:
                insert_address(tx, customer_id, address, now)

            customer = Customer.model_validate(recompute_address_flags(tx, customer_id))

            self.audit.log_change(
                tx,
                entity_type="customer",
                entity_id=customer_id,
                action=AuditAction.CREATE,
                changes={"created": data.model_dump(mode="json", exclude_none=True)}
            )

        logger.info(
            f"Created customer {customer.id} with {len(data.addresses or [])} address(es)"
        )
        return customer

    def get_by_id(self, customer_id: int) -> Customer | None:
        """
        Get customer by ID.

        Returns:
            Customer if found, None otherwise.
        """
        row = self.db.execute_single(
            "SELECT * FROM customers WHERE id = ?",
            (customer_id,)
        )

        if row is None:
            return None

        return Customer.model_validate(row)

    def get_with_addresses(self, customer_id: int) -> CustomerWithAddresses | None:
        """
        Get customer plus all of its addresses.

        Returns:
            The aggregate if found, None otherwise.
        """
        customer = self.get_by_id(customer_id)
        if customer is None:
            return None

        addresses = self._addresses_by_customer([customer_id])
        return CustomerWithAddresses(
            **customer.model_dump(),
            addresses=addresses.get(customer_id, [])
        )

    def update(self, customer_id: int, data: CustomerUpdate) -> Customer:
        """
        Replace a customer's fields and address list.

        The address list is replaced wholesale: existing addresses are
        deleted, then the supplied ones (if any) are inserted.

        Args:
            customer_id: Customer ID
            data: Full replacement data

        Returns:
            Updated customer

        Raises:
            CustomerNotFoundError: If customer not found
            DuplicateFieldError: If the phone number or email belongs to another customer
        """
        now = db_now()

        with self.db.transaction() as tx:
            current_row = tx.execute_single(
                "SELECT * FROM customers WHERE id = ?",
                (customer_id,)
            )
            if current_row is None:
                raise CustomerNotFoundError(customer_id)
            current = Customer.model_validate(current_row)

            self._check_unique(tx, data, exclude_id=customer_id)

            tx.execute(
                """
                UPDATE customers
                SET first_name = ?, last_name = ?, phone_number = ?, email = ?,
                    updated_at = ?
                WHERE id = ?
                """,
                (data.first_name, data.last_name, data.phone_number, data.email,
                 now, customer_id)
            )

            removed = delete_all_addresses(tx, customer_id)
            for address in data.addresses or []:
                insert_address(tx, customer_id, address, now)

            updated = Customer.model_validate(recompute_address_flags(tx, customer_id))

            changes = compute_changes(
                current.model_dump(mode="json"),
                updated.model_dump(mode="json")
            )
            changes["addresses"] = {
                "old": removed,
                "new": len(data.addresses or [])
            }
            self.audit.log_change(
                tx,
                entity_type="customer",
                entity_id=customer_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        logger.info(
            f"Updated customer {customer_id}: replaced {removed} address(es) "
            f"with {len(data.addresses or [])}"
        )
        return updated

    def delete(self, customer_id: int) -> bool:
        """
        Hard delete a customer. Its addresses CASCADE.

        Returns:
            True if deleted, False if not found
        """
        with self.db.transaction() as tx:
            row = tx.execute_single(
                "DELETE FROM customers WHERE id = ? RETURNING *",
                (customer_id,)
            )
            if row is None:
                return False

            self.audit.log_change(
                tx,
                entity_type="customer",
                entity_id=customer_id,
                action=AuditAction.DELETE,
                changes={"deleted": Customer.model_validate(row).model_dump(mode="json")}
            )

        logger.info(f"Deleted customer {customer_id}")
        return True

    def list_customers(self, query: CustomerQuery) -> tuple[list[CustomerWithAddresses], int]:
        """
        List customers with search, address filters, sorting and pagination.

        When an address filter (city/state/pin_code) is given, only customers
        with at least one matching address are returned, and each customer's
        nested address list holds only the matching addresses.

        Returns:
            (page of customers with addresses, total matching customers)
        """
        where, params = self._customer_filters(query)

        total = self.db.execute_scalar(
            f"SELECT COUNT(*) FROM customers c {where}",
            tuple(params)
        )

        # sort/order come from allow-listed values only
        direction = query.order.value.upper()
        rows = self.db.execute(
            f"""
            SELECT c.* FROM customers c
            {where}
            ORDER BY c.{query.sort} {direction}, c.id {direction}
            LIMIT ? OFFSET ?
            """,
            tuple(params) + (query.limit, query.offset)
        )

        address_where, address_params = self._address_filters(query)
        addresses = self._addresses_by_customer(
            [row["id"] for row in rows], address_where, address_params
        )

        customers = [
            CustomerWithAddresses(
                **Customer.model_validate(row).model_dump(),
                addresses=addresses.get(row["id"], [])
            )
            for row in rows
        ]
        return customers, total

    def list_with_multiple_addresses(self) -> list[CustomerWithAddresses]:
        """Customers owning more than one address, most addresses first."""
        return self._list_by_address_count(
            "COUNT(a.id) > 1",
            "address_count DESC, c.id ASC"
        )

    def list_with_single_address(self) -> list[CustomerWithAddresses]:
        """Customers owning exactly one address, newest customer first."""
        return self._list_by_address_count(
            "COUNT(a.id) = 1",
            "c.created_at DESC, c.id DESC"
        )

    def _list_by_address_count(self, having: str, order_by: str) -> list[CustomerWithAddresses]:
        # Counts come from the live address table, not the cached flags
        rows = self.db.execute(
            f"""
            SELECT c.*, COUNT(a.id) AS address_count
            FROM customers c
            INNER JOIN addresses a ON a.customer_id = c.id
            GROUP BY c.id
            HAVING {having}
            ORDER BY {order_by}
            """
        )

        addresses = self._addresses_by_customer([row["id"] for row in rows])
        return [
            CustomerWithAddresses.model_validate(
                {**row, "addresses": addresses.get(row["id"], [])}
            )
            for row in rows
        ]

    @staticmethod
    def _address_filters(query: CustomerQuery) -> tuple[list[str], list[Any]]:
        clauses = []
        params = []
        for column in ("city", "state", "pin_code"):
            value = getattr(query, column)
            if value:
                clauses.append(f"a.{column} LIKE ? {LIKE_ESCAPE}")
                params.append(contains_pattern(value))
        return clauses, params

    def _customer_filters(self, query: CustomerQuery) -> tuple[str, list[Any]]:
        clauses = []
        params: list[Any] = []

        if query.search:
            pattern = contains_pattern(query.search)
            matches = [f"c.{column} LIKE ? {LIKE_ESCAPE}" for column in _SEARCH_COLUMNS]
            clauses.append(f"({' OR '.join(matches)})")
            params.extend([pattern] * len(_SEARCH_COLUMNS))

        if query.has_address_filters:
            address_clauses, address_params = self._address_filters(query)
            clauses.append(
                "EXISTS (SELECT 1 FROM addresses a WHERE a.customer_id = c.id AND "
                + " AND ".join(address_clauses)
                + ")"
            )
            params.extend(address_params)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _addresses_by_customer(
        self,
        customer_ids: list[int],
        extra_clauses: list[str] | None = None,
        extra_params: list[Any] | None = None
    ) -> dict[int, list[Address]]:
        """Fetch addresses for many customers at once, primary first then oldest."""
        if not customer_ids:
            return {}

        placeholders = ", ".join("?" for _ in customer_ids)
        clauses = [f"a.customer_id IN ({placeholders})"] + (extra_clauses or [])
        rows = self.db.execute(
            f"""
            SELECT a.* FROM addresses a
            WHERE {' AND '.join(clauses)}
            ORDER BY a.is_primary DESC, a.created_at ASC, a.id ASC
            """,
            tuple(customer_ids) + tuple(extra_params or [])
        )

        grouped: dict[int, list[Address]] = {}
        for row in rows:
            grouped.setdefault(row["customer_id"], []).append(Address.model_validate(row))
        return grouped
