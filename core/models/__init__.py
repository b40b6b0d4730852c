"""Core domain models."""

from core.models.customer import (
    Customer, CustomerCreate, CustomerUpdate, CustomerWithAddresses,
)
from core.models.address import (
    Address, AddressCreate, AddressFields, AddressUpdate, AddressWithOwner,
)
from core.models.query import CustomerQuery, AddressQuery, SortOrder, MAX_ID, MAX_PAGE

__all__ = [
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate", "CustomerWithAddresses",
    # Address
    "Address", "AddressCreate", "AddressFields", "AddressUpdate", "AddressWithOwner",
    # Queries
    "CustomerQuery", "AddressQuery", "SortOrder", "MAX_ID", "MAX_PAGE",
]
