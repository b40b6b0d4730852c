"""Typed exceptions for customer/address operations."""


class CRMError(Exception):
    """Base class for domain errors raised by the services."""


class NotFoundError(CRMError):
    """A referenced entity does not exist."""

    entity = "Entity"

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found")


class CustomerNotFoundError(NotFoundError):
    entity = "Customer"


class AddressNotFoundError(NotFoundError):
    entity = "Address"


class DuplicateFieldError(CRMError):
    """
    A unique field already belongs to another customer.

    Raised by the precondition checks, before anything is written.
    """

    _LABELS = {
        "phone_number": "Phone number",
        "email": "Email",
    }

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        label = self._LABELS.get(field, field)
        super().__init__(f"{label} already exists")
