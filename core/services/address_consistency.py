"""
Address-set consistency rules shared by the customer and address services.

Two invariants are maintained here:

- Derived flags: customers.has_multiple_addresses / only_one_address mirror
  the live address count (> 1 and == 1). They are only ever written by
  recompute_address_flags(), which must run last in any unit of work that
  adds or removes addresses.
- Primary exclusivity: at most one address per customer has is_primary set.
  Any write that sets is_primary first clears it on the customer's other
  addresses.

Every function takes an open Transaction. Callers own the transaction, so
the clear-then-set and write-then-recompute sequences commit or roll back
together with the mutation that triggered them.
"""

import logging
from typing import Any

from clients.sqlite_client import Transaction
from core.models import AddressFields
from core.schema import DEFAULT_COUNTRY

logger = logging.getLogger(__name__)


def recompute_address_flags(tx: Transaction, customer_id: int) -> dict[str, Any] | None:
    """
    Recompute and store the derived address-count flags for a customer.

    Idempotent: with no address change in between, a second call writes the
    same values. updated_at is left alone, the flags are not a direct field
    edit.

    Returns:
        The customer row after the update, or None if the customer is gone.
    """
    row = tx.execute_single(
        """
        UPDATE customers
        SET has_multiple_addresses = (
                SELECT COUNT(*) > 1 FROM addresses WHERE customer_id = ?
            ),
            only_one_address = (
                SELECT COUNT(*) = 1 FROM addresses WHERE customer_id = ?
            )
        WHERE id = ?
        RETURNING *
        """,
        (customer_id, customer_id, customer_id)
    )

    if row is None:
        logger.warning(f"Address flags not recomputed: customer {customer_id} does not exist")
        return None

    logger.debug(
        "Address flags for customer %s: has_multiple_addresses=%s only_one_address=%s",
        customer_id,
        bool(row["has_multiple_addresses"]),
        bool(row["only_one_address"]),
    )
    return row


def clear_other_primaries(
    tx: Transaction,
    customer_id: int,
    exclude_address_id: int | None = None
) -> int:
    """
    Unset is_primary on a customer's addresses, except the excluded one.

    Call before persisting an address with is_primary = true.

    Returns:
        Number of addresses that lost the primary flag.
    """
    if exclude_address_id is None:
        cleared = tx.rowcount(
            "UPDATE addresses SET is_primary = 0 WHERE customer_id = ? AND is_primary = 1",
            (customer_id,)
        )
    else:
        cleared = tx.rowcount(
            """
            UPDATE addresses SET is_primary = 0
            WHERE customer_id = ? AND id != ? AND is_primary = 1
            """,
            (customer_id, exclude_address_id)
        )

    if cleared:
        logger.info(f"Cleared primary flag on {cleared} address(es) of customer {customer_id}")
    return cleared


def insert_address(
    tx: Transaction,
    customer_id: int,
    data: AddressFields,
    now: str
) -> dict[str, Any]:
    """
    Insert one address for a customer, enforcing primary exclusivity.

    Does not recompute the derived flags: batch callers insert every
    address first and recompute once at the end.

    Returns:
        The inserted address row.
    """
    if data.is_primary:
        clear_other_primaries(tx, customer_id)

    return tx.execute_returning(
        """
        INSERT INTO addresses (
            customer_id, address_line1, address_line2,
            city, state, pin_code, country,
            is_primary, created_at, updated_at
        ) VALUES (
            ?, ?, ?,
            ?, ?, ?, ?,
            ?, ?, ?
        )
        RETURNING *
        """,
        (
            customer_id, data.address_line1, data.address_line2,
            data.city, data.state, data.pin_code, data.country or DEFAULT_COUNTRY,
            data.is_primary, now, now
        )
    )[0]


def delete_all_addresses(tx: Transaction, customer_id: int) -> int:
    """Remove every address of a customer. Returns the number removed."""
    return tx.rowcount(
        "DELETE FROM addresses WHERE customer_id = ?",
        (customer_id,)
    )
