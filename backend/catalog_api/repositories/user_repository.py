"""Repository for User CRUD operations.

Account store: lookup by id or login handle, creation with explicit
timestamps, and the few mutations the API allows.
"""

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models.base import utcnow
from catalog_api.models.user import User

# Fields that may be updated via UserRepository.update().
# Security: Never add 'id', 'username', 'verified' or the timestamps.
# - id, username: identity, immutable
# - verified: only mark_verified() may set it
# - account_created/account_updated: stamped here, never client-supplied
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "first_name",
        "last_name",
        "password_hash",
    }
)


def normalize_username(username: str) -> str:
    """Login handles are stored and compared lower-cased."""
    return username.strip().lower()


class UserRepository:
    """Stateless repository for User table operations.

    All methods are static; there is no instance state. Pass an AsyncSession
    for every call so the caller controls transaction boundaries.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        """Fetch a user by primary key.

        Args:
            db: Async database session.
            user_id: Integer primary key.

        Returns:
            User if found, None otherwise.
        """
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        """Fetch a user by login handle (case-insensitive).

        Args:
            db: Async database session.
            username: Login handle (email address).

        Returns:
            User if found, None otherwise.
        """
        stmt = select(User).where(User.username == normalize_username(username))
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def exists_by_username(db: AsyncSession, username: str) -> bool:
        """Check whether a login handle is already taken."""
        stmt = select(
            exists().where(User.username == normalize_username(username))
        )
        result = await db.execute(stmt)
        return bool(result.scalar())

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        password_hash: str,
        first_name: str,
        last_name: str,
    ) -> User:
        """Create a new, unverified user.

        Username is normalized to lowercase before storage. Both account
        timestamps are stamped with the same instant.

        Args:
            db: Async database session.
            username: Login handle (email address).
            password_hash: bcrypt hash.
            first_name: Given name.
            last_name: Family name.

        Returns:
            Created User with database-generated fields populated.

        Raises:
            sqlalchemy.exc.IntegrityError: If the username already exists.
        """
        now = utcnow()
        user = User(
            username=normalize_username(username),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            verified=False,
            account_created=now,
            account_updated=now,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def update(
        db: AsyncSession,
        user_id: int,
        **kwargs: str,
    ) -> User | None:
        """Update user fields and stamp account_updated.

        Only fields in _UPDATABLE_FIELDS are allowed. Unknown field names
        raise ValueError.

        Args:
            db: Async database session.
            user_id: Primary key of the user to update.
            **kwargs: Field names and values to update.

        Returns:
            Updated User if found, None if user does not exist.

        Raises:
            ValueError: If an unknown field name is passed.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        user = await db.get(User, user_id)
        if user is None:
            return None

        for field, value in kwargs.items():
            setattr(user, field, value)
        user.account_updated = utcnow()

        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def mark_verified(db: AsyncSession, username: str) -> bool:
        """Set the verified flag for a login handle.

        Separated from update() so no request body can ever reach it.

        Args:
            db: Async database session.
            username: Login handle.

        Returns:
            True if an account was updated, False if none exists.
        """
        stmt = (
            update(User)
            .where(User.username == normalize_username(username))
            .values(verified=True, account_updated=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count > 0
