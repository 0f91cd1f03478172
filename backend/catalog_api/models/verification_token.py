"""VerificationToken model - single-use email verification tokens.

Tier 0, keyed by email rather than FK so a token can be looked up from
the link alone. Only the SHA-256 digest of the token is stored.
"""

from datetime import datetime

from sqlalchemy import Boolean, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column

from catalog_api.models.base import Base


class VerificationToken(Base):
    """Email verification token.

    Attributes:
        id: Integer primary key.
        email: Account username the token was issued for.
        token_hash: SHA-256 hex digest of the plain token.
        expires_at: Instant after which the token no longer verifies.
        consumed: Set exactly once, on successful verification.
        created_at: Issue timestamp (UTC).
    """

    __tablename__ = "verification_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    consumed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    created_at: Mapped[datetime] = mapped_column(nullable=False)
