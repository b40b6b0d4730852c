"""Application factory: store, services, middleware, error handlers and routes."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.addresses import create_addresses_router
from api.customers import create_customers_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from clients.sqlite_client import SqliteClient
from core.audit import AuditLogger
from core.config import AppConfig
from core.schema import initialize_schema
from core.seed import seed_sample_data
from core.services.address_service import AddressService
from core.services.customer_service import CustomerService
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


def build_services(db: SqliteClient) -> dict:
    """Wire services around one store handle."""
    audit = AuditLogger(db)
    return {
        "audit": audit,
        "customer": CustomerService(db, audit),
        "address": AddressService(db, audit),
    }


def create_app(config: AppConfig, db: SqliteClient | None = None) -> FastAPI:
    """
    Build the API application.

    The schema is applied (idempotently) before the app is returned, and
    sample data is inserted when the config asks for it and the store is
    empty.

    Args:
        config: Runtime configuration
        db: Store handle; built from config.database_path when omitted
    """
    if db is None:
        db = SqliteClient(config.database_path, busy_timeout_seconds=config.busy_timeout_seconds)

    initialize_schema(db)
    services = build_services(db)

    if config.seed_sample_data:
        seed_sample_data(services["customer"])

    app = FastAPI(title="Customer & Address Manager")
    app.state.config = config
    app.state.services = services

    app.add_middleware(RequestIDMiddleware)
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    register_error_handlers(app, expose_details=config.is_development)

    @app.get("/api/health")
    async def health(request: Request):
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": now_utc().isoformat(),
        }

    app.include_router(create_customers_router(services), prefix="/api")
    app.include_router(create_addresses_router(services), prefix="/api")

    logger.info(
        f"API ready (environment={config.environment}, database={db.database_path})"
    )
    return app
