"""FastAPI application factory for hablar.

``create_app()`` is the single entry point used by the CLI ``serve``
command and by tests. Services are built once and stored on
``app.state.gateway``.
"""

import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core import Gateway
from ..errors import CircuitOpenError, ExhaustedError, RequestValidationError
from .routes import router

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = (
    "Lo siento, el tutor no está disponible ahora mismo. "
    "Inténtalo de nuevo en unos momentos."
)


async def _circuit_open(request: Request, exc: CircuitOpenError) -> JSONResponse:
    retry_after = max(1, math.ceil(exc.retry_after))
    return JSONResponse(
        status_code=429,
        content={"error": str(exc), "code": "circuit_open", "retryAfter": retry_after},
        headers={"Retry-After": str(retry_after)},
    )


async def _exhausted(request: Request, exc: ExhaustedError) -> JSONResponse:
    if exc.rate_limited:
        return JSONResponse(
            status_code=429,
            content={"error": "Quota exceeded", "code": "rate_limit_exceeded"},
        )
    return JSONResponse(
        status_code=503,
        content={
            "error": UNAVAILABLE_MESSAGE,
            "code": "generation_unavailable",
            "retryable": True,
        },
    )


async def _invalid_request(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


def create_app(gateway: Gateway) -> FastAPI:
    """Build the FastAPI application around prebuilt services.

    Args:
        gateway: Services shared by every request

    Returns:
        App with ``/api/v1`` routes and error mappings installed
    """
    app = FastAPI(title="hablar", version="0.1.0")
    app.state.gateway = gateway
    app.include_router(router, prefix="/api/v1")
    app.add_exception_handler(CircuitOpenError, _circuit_open)
    app.add_exception_handler(ExhaustedError, _exhausted)
    app.add_exception_handler(RequestValidationError, _invalid_request)
    logger.info("hablar API ready")
    return app
