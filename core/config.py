"""Application configuration."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

_TRUTHY = {"1", "true", "yes", "on"}


class AppConfig(BaseModel):
    """
    Runtime configuration for the customer/address service.

    Built from environment variables by from_env(); tests construct it
    directly with the values they need.
    """

    database_path: str = Field(
        default="customer_crud.db",
        description="Path of the SQLite database file",
        min_length=1,
    )
    environment: str = Field(
        default="production",
        description="Deployment environment; 'development' exposes error details",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    seed_sample_data: bool = Field(
        default=False,
        description="Insert sample customers on startup when the store is empty",
    )
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Origins allowed to call the API from a browser",
    )
    busy_timeout_seconds: float = Field(
        default=30.0,
        description="How long a writer waits for the store's write lock",
        gt=0,
        le=300,
    )

    @field_validator("environment", "log_level", mode="before")
    @classmethod
    def normalize_case(cls, value, info):
        if isinstance(value, str):
            value = value.strip()
            return value.upper() if info.field_name == "log_level" else value.lower()
        return value

    @property
    def is_development(self) -> bool:
        return self.environment in {"dev", "development", "local"}

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "AppConfig":
        """
        Build configuration from environment variables.

        A .env file is loaded first; variables already set in the
        environment take precedence over it.
        """
        load_dotenv(dotenv_path)

        values: dict = {}
        if os.getenv("DATABASE_PATH"):
            values["database_path"] = os.getenv("DATABASE_PATH")
        if os.getenv("ENVIRONMENT"):
            values["environment"] = os.getenv("ENVIRONMENT")
        if os.getenv("LOG_LEVEL"):
            values["log_level"] = os.getenv("LOG_LEVEL")
        if os.getenv("DB_BUSY_TIMEOUT"):
            values["busy_timeout_seconds"] = os.getenv("DB_BUSY_TIMEOUT")

        values["seed_sample_data"] = (
            os.getenv("SEED_SAMPLE_DATA", "").strip().lower() in _TRUTHY
        )

        cors_env = os.getenv("CORS_ORIGINS", "")
        values["cors_origins"] = [
            origin.strip() for origin in cors_env.split(",") if origin.strip()
        ]

        return cls(**values)
