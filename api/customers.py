"""/api/customers: customer aggregate endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, Request

from api.base import EntityId, build_pagination, success_response
from core.exceptions import CustomerNotFoundError
from core.models import MAX_PAGE, CustomerCreate, CustomerQuery, CustomerUpdate, SortOrder


def create_customers_router(services: dict) -> APIRouter:
    # Handlers are plain functions; store calls block and run in the threadpool
    router = APIRouter(prefix="/customers")

    customer_svc = services["customer"]

    # -------------------------------------------------------------------------
    # Report views (must be registered before /customers/{customer_id})
    # -------------------------------------------------------------------------

    @router.get("/multiple-addresses")
    def customers_with_multiple_addresses(request: Request):
        customers = customer_svc.list_with_multiple_addresses()
        return success_response(
            [c.model_dump(mode="json") for c in customers],
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/single-address")
    def customers_with_single_address(request: Request):
        customers = customer_svc.list_with_single_address()
        return success_response(
            [c.model_dump(mode="json") for c in customers],
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    @router.get("")
    def list_customers(
        request: Request,
        page: int = Query(1, ge=1, le=MAX_PAGE),
        limit: int = Query(10, ge=1, le=100),
        search: str | None = Query(None),
        city: str | None = Query(None),
        state: str | None = Query(None),
        pin_code: str | None = Query(None),
        sort: Literal["first_name", "last_name", "created_at", "phone_number"] = Query("created_at"),
        order: SortOrder = Query(SortOrder.DESC),
    ):
        query = CustomerQuery(
            page=page, limit=limit, search=search,
            city=city, state=state, pin_code=pin_code,
            sort=sort, order=order,
        )
        customers, total = customer_svc.list_customers(query)
        return success_response(
            [c.model_dump(mode="json") for c in customers],
            pagination=build_pagination(page, limit, total),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.post("", status_code=201)
    def create_customer(request: Request, body: CustomerCreate):
        customer = customer_svc.create(body)
        return success_response(
            customer.model_dump(mode="json"),
            message="Customer created successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Single customer
    # -------------------------------------------------------------------------

    @router.get("/{customer_id}")
    def get_customer(request: Request, customer_id: EntityId):
        customer = customer_svc.get_with_addresses(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return success_response(
            customer.model_dump(mode="json"),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.put("/{customer_id}")
    def update_customer(request: Request, customer_id: EntityId, body: CustomerUpdate):
        customer = customer_svc.update(customer_id, body)
        return success_response(
            customer.model_dump(mode="json"),
            message="Customer updated successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.delete("/{customer_id}")
    def delete_customer(request: Request, customer_id: EntityId):
        deleted = customer_svc.delete(customer_id)
        if not deleted:
            raise CustomerNotFoundError(customer_id)
        return success_response(
            message="Customer deleted successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
