"""Health check at /healthz.

GET only, with no query string and no body. Every outcome is an empty
response carrying no-cache headers:

- 200: a HealthCheck row was written
- 400: query string or body present
- 405: any other method (with Allow: GET)
- 503: the database rejected the write
"""

from fastapi import APIRouter, Request, Response

from catalog_api.api.deps import DbSession
from catalog_api.services.health_service import HealthService

router = APIRouter()

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_HEALTH_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "X-Content-Type-Options": "nosniff",
}


def _health_response(status_code: int, **extra: str) -> Response:
    return Response(status_code=status_code, headers={**_HEALTH_HEADERS, **extra})


def _has_body(request: Request) -> bool:
    if "transfer-encoding" in request.headers:
        return True
    length = request.headers.get("content-length", "0")
    return not length.isdigit() or int(length) > 0


@router.api_route(
    "/healthz",
    methods=_ALL_METHODS,
    include_in_schema=False,
    name="api.health.check",
)
@router.api_route(
    "/healthz/",
    methods=_ALL_METHODS,
    include_in_schema=False,
    name="api.health.check",
)
async def healthz(request: Request, db: DbSession) -> Response:
    """Write a HealthCheck row and report whether it committed."""
    if request.method != "GET":
        return _health_response(405, Allow="GET")
    if request.url.query or _has_body(request):
        return _health_response(400)

    healthy = await HealthService(db).check()
    return _health_response(200 if healthy else 503)
