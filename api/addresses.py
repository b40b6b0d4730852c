"""/api/addresses: address endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, Request

from api.base import EntityId, build_pagination, success_response
from core.exceptions import AddressNotFoundError
from core.models import MAX_ID, MAX_PAGE, AddressCreate, AddressQuery, AddressUpdate, SortOrder


def create_addresses_router(services: dict) -> APIRouter:
    # Handlers are plain functions; store calls block and run in the threadpool
    router = APIRouter(prefix="/addresses")

    address_svc = services["address"]

    @router.get("/customer/{customer_id}")
    def addresses_for_customer(request: Request, customer_id: EntityId):
        addresses = address_svc.list_for_customer(customer_id)
        return success_response(
            [a.model_dump(mode="json") for a in addresses],
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("")
    def list_addresses(
        request: Request,
        page: int = Query(1, ge=1, le=MAX_PAGE),
        limit: int = Query(10, ge=1, le=100),
        customer_id: int | None = Query(None, ge=1, le=MAX_ID),
        city: str | None = Query(None),
        state: str | None = Query(None),
        pin_code: str | None = Query(None),
        sort: Literal["city", "state", "created_at"] = Query("created_at"),
        order: SortOrder = Query(SortOrder.DESC),
    ):
        query = AddressQuery(
            page=page, limit=limit, customer_id=customer_id,
            city=city, state=state, pin_code=pin_code,
            sort=sort, order=order,
        )
        addresses, total = address_svc.list_addresses(query)
        return success_response(
            [a.model_dump(mode="json") for a in addresses],
            pagination=build_pagination(page, limit, total),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.post("", status_code=201)
    def create_address(request: Request, body: AddressCreate):
        address = address_svc.create(body)
        return success_response(
            address.model_dump(mode="json"),
            message="Address created successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.get("/{address_id}")
    def get_address(request: Request, address_id: EntityId):
        address = address_svc.get_by_id(address_id)
        if address is None:
            raise AddressNotFoundError(address_id)
        return success_response(
            address.model_dump(mode="json"),
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.put("/{address_id}")
    def update_address(request: Request, address_id: EntityId, body: AddressUpdate):
        address = address_svc.update(address_id, body)
        return success_response(
            address.model_dump(mode="json"),
            message="Address updated successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    @router.delete("/{address_id}")
    def delete_address(request: Request, address_id: EntityId):
        deleted = address_svc.delete(address_id)
        if not deleted:
            raise AddressNotFoundError(address_id)
        return success_response(
            message="Address deleted successfully",
            request_id=request.state.request_id,
        ).model_dump(mode="json")

    return router
