"""
Request logging middleware.
"""
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from core.logger import setup_logger

logger = setup_logger("app.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        client = request.client.host if request.client else "-"

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000.0
            logger.error(
                f"client={client} method={request.method} path={request.url.path} "
                f"status=500 duration_ms={duration_ms:.2f} UNHANDLED",
                exc_info=True
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info(
            f"client={client} method={request.method} path={request.url.path} "
            f"status={response.status_code} duration_ms={duration_ms:.2f}"
        )
        return response


def register_request_logging(app) -> None:
    app.add_middleware(RequestLogMiddleware)
