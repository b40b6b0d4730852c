"""Address (postal location) domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from core.models.query import MAX_ID


class AddressFields(BaseModel):
    """Editable address fields, shared by every address payload."""

    address_line1: str = Field(..., min_length=5, max_length=200)
    address_line2: str | None = Field(None, max_length=200)
    city: str = Field(..., min_length=2, max_length=50)
    state: str = Field(..., min_length=2, max_length=50)
    pin_code: str = Field(..., pattern=r"^[0-9]{6}$")
    country: str | None = Field(None, min_length=2, max_length=50)
    is_primary: bool = False

    model_config = {"str_strip_whitespace": True}


class AddressCreate(AddressFields):
    """Data required to create an address for an existing customer."""

    customer_id: int = Field(..., ge=1, le=MAX_ID)


class AddressUpdate(AddressFields):
    """
    Full replacement of an address's editable fields.

    The owning customer is not part of the payload: an address never moves
    to another customer.
    """


class Address(BaseModel):
    """Full address entity as stored."""

    id: int
    customer_id: int
    address_line1: str
    address_line2: str | None
    city: str
    state: str
    pin_code: str
    country: str
    is_primary: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AddressWithOwner(Address):
    """Address joined with its owner's contact fields."""

    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    email: str | None = None
