"""User account endpoints.

- POST /user: public registration; the verification message is published
  by a background task after the transaction commits
- GET /user/verify: public verification callback
- GET/PUT /user/{user_id}: verified principal, own account only
"""

from fastapi import APIRouter, BackgroundTasks, Query, Response

from catalog_api.api.deps import CurrentUser, DbSession, RequestLog
from catalog_api.core.config import settings
from catalog_api.core.errors import ValidationError
from catalog_api.core.notifications import publish_verification_message
from catalog_api.schemas.user import UserCreate, UserResponse, UserUpdate
from catalog_api.services.user_service import UserService
from catalog_api.services.verification_service import VerificationService

router = APIRouter()


@router.post("", status_code=201, name="api.user.create")
async def create_user(
    body: UserCreate,
    response: Response,
    background_tasks: BackgroundTasks,
    db: DbSession,
    log: RequestLog,
) -> UserResponse:
    """Register an unverified account and send its verification link."""
    user, token = await UserService(db, log).register(body)
    await db.commit()

    # Best-effort, at most once; failures never undo the registration
    background_tasks.add_task(
        publish_verification_message, email=user.username, token=token
    )

    response.headers["Location"] = f"{settings.api_prefix}/user/{user.id}"
    return UserResponse.model_validate(user)


@router.get("/verify", name="api.user.verify")
async def verify_user(
    db: DbSession,
    log: RequestLog,
    email: str = Query(min_length=1),
    token: str = Query(min_length=1),
) -> dict[str, str]:
    """Redeem a verification link.

    Any failure (wrong, consumed or expired token, unknown account) is a
    single generic 400 so the link reveals nothing about which check
    failed.
    """
    verified = await VerificationService(db, log=log).verify(email, token)
    if not verified:
        raise ValidationError(
            "Invalid or expired verification link",
            details=[{"field": "token", "error": "INVALID_VERIFICATION_TOKEN"}],
        )
    await db.commit()
    return {"message": "Account verified"}


@router.get("/{user_id}", name="api.user.get")
async def get_user(
    user_id: int,
    principal: CurrentUser,
    db: DbSession,
    log: RequestLog,
) -> UserResponse:
    """Return the caller's own account."""
    user = await UserService(db, log).get_self(user_id, principal)
    return UserResponse.model_validate(user)


@router.put("/{user_id}", status_code=204, name="api.user.update")
async def update_user(
    user_id: int,
    body: UserUpdate,
    principal: CurrentUser,
    db: DbSession,
    log: RequestLog,
) -> None:
    """Update first_name, last_name and/or password of the caller's account."""
    await UserService(db, log).update_self(user_id, principal, body)
    await db.commit()
