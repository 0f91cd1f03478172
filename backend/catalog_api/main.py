"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Exception handlers rendering the error envelope
- Request-context middleware (per-request bound logger, X-Request-ID)
- The application-wide access gate
- API v1 router mounting, the /healthz health check and the fail-closed catch-all
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_api.api import health
from catalog_api.api.deps import enforce_access
from catalog_api.api.v1.router import router as v1_router
from catalog_api.core.config import settings
from catalog_api.core.database import dispose_engine
from catalog_api.core.errors import APIError, ForbiddenError
from catalog_api.core.request_context import RequestContextMiddleware
from catalog_api.core.responses import ErrorDetail, ErrorResponse

logger = structlog.get_logger()

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[dict] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=code, message=message, details=details)
        ).model_dump(),
        headers=headers,
    )


def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors.

    Args:
        request: The incoming request.
        exc: The APIError that was raised.

    Returns:
        JSONResponse with error envelope, status code and any extra headers
        (e.g., the Basic auth challenge on 401).
    """
    return _error_response(
        exc.status_code, exc.code, exc.message, exc.details, exc.headers
    )


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI's validation errors to a 400 VALIDATION_ERROR.

    Covers malformed JSON, unknown or server-assigned fields, nulls,
    out-of-range quantities and non-integer path ids.
    """
    return _error_response(
        400,
        "VALIDATION_ERROR",
        "Request validation failed",
        details=[
            {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
            for e in exc.errors()
        ],
    )


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (e.g., malformed Basic header) in the envelope."""
    return _error_response(
        exc.status_code,
        "HTTP_ERROR",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions.

    Returns 500 INTERNAL_ERROR without exposing stack traces.
    """
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Release pooled database connections on shutdown."""
    yield
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Docs and OpenAPI routes are disabled: every path that is not in the
    access table must fail closed.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Catalog API",
        version="1.0.0",
        description="Product catalog with verified accounts and image storage",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        dependencies=[Depends(enforce_access)],
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

    # Register exception handlers
    # Order matters: specific handlers first, then catch-all
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(health.router)
    app.include_router(v1_router, prefix=settings.api_prefix)

    # Registered last so it only sees requests no real route matched. The
    # access gate has already answered 401/403 by the time it would run.
    @app.api_route(
        "/{path:path}", methods=_ALL_METHODS, include_in_schema=False
    )
    async def unmatched(path: str) -> None:
        raise ForbiddenError()

    return app


# Create the application instance
# Used by uvicorn: uvicorn catalog_api.main:app
app = create_app()
