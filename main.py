"""ASGI entry point: `uvicorn main:app`."""

from api.app import create_app
from core.config import AppConfig
from utils.logging import setup_logging

config = AppConfig.from_env()
setup_logging(config.log_level)

app = create_app(config)
