"""Customer domain models."""

from datetime import datetime

from pydantic import BaseModel, Field, EmailStr, field_validator

from core.models.address import Address, AddressFields


class CustomerCreate(BaseModel):
    """Data required to create a customer, optionally with addresses."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    phone_number: str = Field(..., pattern=r"^[0-9]{10}$")
    email: EmailStr | None = None
    addresses: list[AddressFields] | None = None

    model_config = {"str_strip_whitespace": True}

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        """An empty email means no email."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CustomerUpdate(CustomerCreate):
    """
    Full replacement of a customer's fields and address list.

    A missing or empty address list removes every existing address.
    """


class Customer(BaseModel):
    """Full customer entity as stored."""

    id: int
    first_name: str
    last_name: str
    phone_number: str
    email: str | None
    has_multiple_addresses: bool
    only_one_address: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerWithAddresses(Customer):
    """Customer aggregate: the customer row plus its addresses."""

    addresses: list[Address] = Field(default_factory=list)
    address_count: int | None = None
