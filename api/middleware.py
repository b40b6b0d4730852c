"""Request-scoped middleware for API requests."""

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("api.access")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a unique request ID to every request and logs one access line.

    Unhandled exceptions are re-raised for the server error handler, which
    builds the 500 response and copies the request ID onto it.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self._log(request, 500, started, request_id)
            raise

        response.headers["X-Request-ID"] = request_id
        self._log(request, response.status_code, started, request_id)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, started: float, request_id: str) -> None:
        logger.info(
            "%s %s %s %.1fms request_id=%s",
            request.method,
            request.url.path,
            status_code,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
