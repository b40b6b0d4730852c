"""List query parameters: filters, pagination and allow-listed sorting."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

# Largest value a SQLite INTEGER column or bound parameter can hold
MAX_ID = 2**63 - 1

# Keeps (page - 1) * limit within MAX_ID at the largest limit
MAX_PAGE = MAX_ID // 100


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PageQuery(BaseModel):
    """Page/limit pagination shared by the list endpoints."""

    page: int = Field(1, ge=1, le=MAX_PAGE)
    limit: int = Field(10, ge=1, le=100)
    order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class CustomerQuery(PageQuery):
    """Filters for listing customers. Address filters match any of a customer's addresses."""

    search: str | None = None
    city: str | None = None
    state: str | None = None
    pin_code: str | None = None
    sort: Literal["first_name", "last_name", "created_at", "phone_number"] = "created_at"

    @property
    def has_address_filters(self) -> bool:
        return bool(self.city or self.state or self.pin_code)


class AddressQuery(PageQuery):
    """Filters for listing addresses."""

    customer_id: int | None = Field(None, ge=1, le=MAX_ID)
    city: str | None = None
    state: str | None = None
    pin_code: str | None = None
    sort: Literal["city", "state", "created_at"] = "created_at"
