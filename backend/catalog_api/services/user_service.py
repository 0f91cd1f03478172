"""User account operations: registration, self read, self update."""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from catalog_api.core.errors import (
    ConflictError,
    NotFoundError,
    NotOwnerError,
    ValidationError,
    VerificationPendingError,
)
from catalog_api.core.security import hash_password
from catalog_api.models.user import User
from catalog_api.repositories.user_repository import UserRepository
from catalog_api.schemas.user import UserCreate, UserUpdate
from catalog_api.services.verification_service import VerificationService

_USERNAME_TAKEN = "USERNAME_ALREADY_EXISTS"


class UserService:
    """Account workflows on a request-scoped session.

    The caller commits; nothing here ends the transaction except the
    rollback after a unique-constraint race.
    """

    def __init__(
        self,
        db: AsyncSession,
        log: FilteringBoundLogger | None = None,
        verification: VerificationService | None = None,
    ) -> None:
        self._db = db
        self._log = log or structlog.get_logger()
        self._verification = verification or VerificationService(db, log=self._log)

    async def register(self, body: UserCreate) -> tuple[User, str]:
        """Create an unverified account and issue its verification token.

        Args:
            body: Validated registration request.

        Returns:
            The new user and the plain verification token to publish.

        Raises:
            ConflictError: If the handle already has an account.
            VerificationPendingError: If a token is outstanding for the handle.
        """
        username = str(body.username)
        if await UserRepository.exists_by_username(self._db, username):
            raise ConflictError(
                code=_USERNAME_TAKEN,
                message="An account with this username already exists",
            )
        if await self._verification.has_outstanding_token(username):
            raise VerificationPendingError()

        try:
            user = await UserRepository.create(
                self._db,
                username=username,
                password_hash=hash_password(body.password),
                first_name=body.first_name,
                last_name=body.last_name,
            )
        except IntegrityError as exc:
            await self._db.rollback()
            raise ConflictError(
                code=_USERNAME_TAKEN,
                message="An account with this username already exists",
            ) from exc

        token = await self._verification.issue_token(user.username)
        self._log.info("user_registered", user_id=user.id)
        return user, token

    async def _load_self(self, user_id: int, principal: User) -> User:
        user = await UserRepository.get_by_id(self._db, user_id)
        if user is None:
            raise NotFoundError("User", str(user_id))
        if user.id != principal.id:
            raise NotOwnerError("user")
        return user

    async def get_self(self, user_id: int, principal: User) -> User:
        """Return the principal's own account.

        Raises:
            NotFoundError: If no account has this id.
            NotOwnerError: If the id belongs to someone else.
        """
        return await self._load_self(user_id, principal)

    async def update_self(
        self, user_id: int, principal: User, body: UserUpdate
    ) -> User:
        """Apply first_name / last_name / password changes to own account.

        Raises:
            NotFoundError: If no account has this id.
            NotOwnerError: If the id belongs to someone else.
            ValidationError: If the body changes nothing.
        """
        await self._load_self(user_id, principal)

        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationError("Request body must contain at least one field")

        if "password" in changes:
            changes["password_hash"] = hash_password(changes.pop("password"))

        user = await UserRepository.update(self._db, user_id, **changes)
        if user is None:
            raise NotFoundError("User", str(user_id))
        self._log.info("user_updated", user_id=user_id, fields=sorted(changes))
        return user
