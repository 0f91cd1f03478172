"""Email verification token workflow.

Per login handle, tokens move NoToken -> Issued -> Consumed | Expired.
Only an unconsumed, unexpired token bound to the same handle flips the
account's verified flag, and only once: consumption is a conditional
UPDATE whose row count picks a single winner.

There is no resend. Once a token has been issued for a handle, further
issuance is refused even after the token expires.
"""

import hashlib
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from catalog_api.core.config import settings
from catalog_api.core.errors import VerificationPendingError
from catalog_api.models.base import utcnow
from catalog_api.repositories.user_repository import (
    UserRepository,
    normalize_username,
)
from catalog_api.repositories.verification_token_repository import (
    VerificationTokenRepository,
)

# 32 bytes -> 43 URL-safe characters
_TOKEN_BYTES = 32


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a plain token; only digests are stored."""
    return hashlib.sha256(token.encode()).hexdigest()


class VerificationService:
    """Issue and redeem single-use verification tokens.

    Args:
        db: Request-scoped session; the caller commits.
        ttl: Validity window of new tokens. Defaults to the configured
            VERIFICATION_TOKEN_TTL_SECONDS.
        clock: Returns the current aware UTC time. Tests inject a fake.
        log: Request-bound logger.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
        log: FilteringBoundLogger | None = None,
    ) -> None:
        self._db = db
        self._ttl = ttl or timedelta(seconds=settings.verification_token_ttl_seconds)
        self._clock = clock
        self._log = log or structlog.get_logger()

    async def has_outstanding_token(self, username: str) -> bool:
        """True if an unconsumed token exists for the handle."""
        return await VerificationTokenRepository.has_unconsumed(
            self._db, normalize_username(username)
        )

    async def issue_token(self, username: str) -> str:
        """Issue a token for a handle with no outstanding token.

        Args:
            username: Login handle.

        Returns:
            The plain token. Only its digest is persisted.

        Raises:
            VerificationPendingError: If a token is already outstanding.
        """
        email = normalize_username(username)
        if await self.has_outstanding_token(email):
            raise VerificationPendingError()

        token = secrets.token_urlsafe(_TOKEN_BYTES)
        now = self._clock()
        await VerificationTokenRepository.create(
            self._db,
            email=email,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + self._ttl,
        )
        self._log.info("verification_token_issued", email=email)
        return token

    async def verify(self, username: str, token: str) -> bool:
        """Redeem a token and mark the account verified.

        Fails (returns False) for an unknown token, a token bound to a
        different handle, a consumed or expired token, or an unknown
        account. A second call with the same token always fails.

        Args:
            username: Login handle from the verification link.
            token: Plain token from the verification link.

        Returns:
            True if this call verified the account.
        """
        email = normalize_username(username)
        token_hash = hash_token(token)
        now = self._clock()

        record = await VerificationTokenRepository.get_by_token_hash(
            self._db, token_hash
        )
        if record is None or record.email != email:
            self._log.info("verification_rejected", email=email, reason="unknown")
            return False
        if record.consumed:
            self._log.info("verification_rejected", email=email, reason="consumed")
            return False
        if now > record.expires_at:
            self._log.info("verification_rejected", email=email, reason="expired")
            return False
        if not await UserRepository.exists_by_username(self._db, email):
            self._log.info("verification_rejected", email=email, reason="no_account")
            return False

        won = await VerificationTokenRepository.consume(
            self._db, token_hash=token_hash, email=email, now=now
        )
        if not won:
            # Lost a race with a concurrent verify of the same token
            self._log.info("verification_rejected", email=email, reason="raced")
            return False

        await UserRepository.mark_verified(self._db, email)
        self._log.info("account_verified", email=email)
        return True
