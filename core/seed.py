"""Sample data for a fresh store."""

import logging

from core.models import AddressFields, CustomerCreate
from core.services.customer_service import CustomerService

logger = logging.getLogger(__name__)

_SAMPLE_CUSTOMERS = [
    ("John", "Doe", "9876543210", "john.doe@example.com"),
    ("Jane", "Smith", "9876543211", "jane.smith@example.com"),
    ("Mike", "Johnson", "9876543212", "mike.johnson@example.com"),
]


def sample_customers() -> list[CustomerCreate]:
    """Three customers, each with a primary home and a secondary office address."""
    return [
        CustomerCreate(
            first_name=first_name,
            last_name=last_name,
            phone_number=phone_number,
            email=email,
            addresses=[
                AddressFields(
                    address_line1=f"{first_name}'s Home",
                    address_line2="Apartment 101",
                    city="Mumbai",
                    state="Maharashtra",
                    pin_code="400001",
                    is_primary=True,
                ),
                AddressFields(
                    address_line1=f"{first_name}'s Office",
                    address_line2="Floor 5",
                    city="Delhi",
                    state="Delhi",
                    pin_code="110001",
                ),
            ],
        )
        for first_name, last_name, phone_number, email in _SAMPLE_CUSTOMERS
    ]


def seed_sample_data(customers: CustomerService) -> int:
    """
    Insert the sample customers if the store has no customers yet.

    Goes through CustomerService so the derived flags and audit entries are
    written exactly as for API-created customers.

    Returns:
        Number of customers inserted (0 when the store was not empty).
    """
    existing = customers.db.execute_scalar("SELECT COUNT(*) FROM customers")
    if existing:
        logger.info(f"Skipping sample data: store already has {existing} customer(s)")
        return 0

    created = 0
    for data in sample_customers():
        customers.create(data)
        created += 1

    logger.info(f"Inserted {created} sample customers")
    return created
