"""Shared dependencies for API endpoints.

enforce_access is installed application-wide: every request, including
ones no endpoint matches, passes the access gate before any handler runs.
The session, request logger and storage backend are injected through the
aliases below so tests can override them.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from catalog_api.core.access import Decision, PrincipalState, decide, is_public
from catalog_api.core.database import get_db
from catalog_api.core.errors import (
    ForbiddenError,
    ServiceUnavailableError,
    UnauthorizedError,
    UnverifiedError,
)
from catalog_api.core.request_context import get_request_log
from catalog_api.core.security import verify_password
from catalog_api.models import User
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.storage.base import StorageBackend
from catalog_api.storage.factory import get_storage_backend

# auto_error=False: a missing header means "anonymous", not an instant 401.
# Called from enforce_access only for non-public routes, so a malformed
# header never reaches a public endpoint.
_basic_auth = HTTPBasic(auto_error=False, realm="catalog")

DbSession = Annotated[AsyncSession, Depends(get_db)]
RequestLog = Annotated[FilteringBoundLogger, Depends(get_request_log)]
Storage = Annotated[StorageBackend, Depends(get_storage_backend)]


async def authenticate(
    db: AsyncSession,
    credentials: HTTPBasicCredentials | None,
    log: FilteringBoundLogger,
) -> User | None:
    """Resolve Basic credentials to a user.

    Unknown handles and wrong passwords both yield None (anonymous); the
    password check runs either way so timing does not reveal which.

    Raises:
        ServiceUnavailableError: If the account store cannot be queried.
    """
    if credentials is None:
        return None
    try:
        user = await UserRepository.get_by_username(db, credentials.username)
    except SQLAlchemyError as exc:
        log.error("principal_lookup_failed", error=str(exc))
        raise ServiceUnavailableError() from exc

    if not verify_password(
        credentials.password, user.password_hash if user else None
    ):
        log.info("authentication_failed")
        return None
    return user


def _principal_state(user: User | None) -> PrincipalState:
    if user is None:
        return PrincipalState.ANONYMOUS
    if user.verified:
        return PrincipalState.VERIFIED
    return PrincipalState.UNVERIFIED


async def _read_credentials(request: Request) -> HTTPBasicCredentials | None:
    """Parse the Basic header; an undecodable one is a 401 challenge."""
    try:
        return await _basic_auth(request)
    except HTTPException as exc:
        raise UnauthorizedError("Malformed credentials") from exc


async def enforce_access(request: Request, db: DbSession) -> None:
    """Application-wide access gate.

    Public routes skip authentication entirely, including parsing of the
    Authorization header. Everything else resolves the principal and
    applies the decision table from core.access:

    - UNAUTHENTICATED -> 401 with a Basic challenge
    - UNVERIFIED -> 403 EMAIL_NOT_VERIFIED
    - FORBIDDEN (unmatched route, authenticated caller) -> 403

    On success the principal is stored on ``request.state.principal`` and
    the request logger is re-bound with the user id.
    """
    request.state.principal = None
    path, method = request.url.path, request.method
    if is_public(path, method):
        return

    log = get_request_log(request)
    credentials = await _read_credentials(request)
    user = await authenticate(db, credentials, log)
    decision = decide(path, method, _principal_state(user))

    if decision is Decision.UNAUTHENTICATED:
        raise UnauthorizedError()
    if decision is Decision.UNVERIFIED:
        raise UnverifiedError()
    if decision is Decision.FORBIDDEN:
        raise ForbiddenError()

    request.state.principal = user
    request.state.log = log.bind(user_id=user.id if user else None)


def get_current_user(request: Request) -> User:
    """Return the principal the gate admitted.

    Raises:
        UnauthorizedError: If the route was reached without a principal.
    """
    principal: User | None = getattr(request.state, "principal", None)
    if principal is None:
        raise UnauthorizedError()
    return principal


CurrentUser = Annotated[User, Depends(get_current_user)]
