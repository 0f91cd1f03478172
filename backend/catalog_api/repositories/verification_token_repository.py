"""Repository for VerificationToken operations.

Token ledger: single-use, time-boxed tokens stored as SHA-256 digests.
Consumption is one conditional UPDATE so that concurrent verify calls
cannot both succeed.
"""

from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models.base import utcnow
from catalog_api.models.verification_token import VerificationToken


class VerificationTokenRepository:
    """Stateless repository for VerificationToken table operations.

    All methods are static; there is no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> VerificationToken:
        """Store a new verification token.

        Args:
            db: Async database session.
            email: Login handle the token is bound to.
            token_hash: SHA-256 hash of the plain token.
            created_at: Issue instant.
            expires_at: Instant after which the token is no longer valid.

        Returns:
            Created VerificationToken.
        """
        vt = VerificationToken(
            email=email,
            token_hash=token_hash,
            created_at=created_at,
            expires_at=expires_at,
            consumed=False,
        )
        db.add(vt)
        await db.flush()
        return vt

    @staticmethod
    async def get_by_token_hash(
        db: AsyncSession,
        token_hash: str,
    ) -> VerificationToken | None:
        """Look up a token by its digest.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the plain token.

        Returns:
            VerificationToken if found, None otherwise.
        """
        stmt = select(VerificationToken).where(
            VerificationToken.token_hash == token_hash,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def has_unconsumed(db: AsyncSession, email: str) -> bool:
        """Check for any unconsumed token bound to a handle, expired or not."""
        stmt = select(
            exists().where(
                VerificationToken.email == email,
                VerificationToken.consumed.is_(False),
            )
        )
        result = await db.execute(stmt)
        return bool(result.scalar())

    @staticmethod
    async def consume(
        db: AsyncSession,
        *,
        token_hash: str,
        email: str,
        now: datetime | None = None,
    ) -> bool:
        """Atomically consume a live token.

        The update only matches an unconsumed, unexpired token bound to
        ``email``; the affected row count tells the caller whether this
        call won.

        Args:
            db: Async database session.
            token_hash: SHA-256 hash of the plain token.
            email: Login handle the token must be bound to.
            now: Reference instant for the expiry check.

        Returns:
            True if exactly this call consumed the token.
        """
        stmt = (
            update(VerificationToken)
            .where(
                VerificationToken.token_hash == token_hash,
                VerificationToken.email == email,
                VerificationToken.consumed.is_(False),
                VerificationToken.expires_at >= (now or utcnow()),
            )
            .values(consumed=True)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        row_count: int = result.rowcount  # type: ignore[attr-defined]
        return row_count == 1
