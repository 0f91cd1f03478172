"""Credential verifier: one-way password hashing and comparison.

Stateless helpers around bcrypt. The rest of the application treats the
stored hash as opaque and only asks "does this secret match?".

- hash_password: bcrypt with the configured cost factor
- verify_password: constant-time comparison, never raises on bad input
- DUMMY_HASH: compared against on user-not-found to keep timing uniform
"""

import logging

import bcrypt

from catalog_api.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes and newer releases refuse longer
# input outright. Registration caps passwords at this length, so anything
# longer can never match a stored hash.
_BCRYPT_MAX_BYTES = 72

# Pre-computed bcrypt hash for timing-safe comparison on user-not-found.
# Security: prevents user enumeration via response time differences.
DUMMY_HASH = b"$2b$12$ZP2PVB8yI35X.mkRqcUPUuSzJA1CNRt4dZ7X3cyrfJu.2S3w.Qen2"


def hash_password(password: str) -> str:
    """Hash a plain-text password.

    Args:
        password: Plain-text password (at most 72 bytes once encoded).

    Returns:
        bcrypt hash as a UTF-8 string, suitable for storage.
    """
    return bcrypt.hashpw(
        password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    ).decode()


def verify_password(password: str, password_hash: str | None) -> bool:
    """Compare a presented secret with a stored hash.

    When no hash is available (unknown user), a comparison against
    DUMMY_HASH still runs so the response time does not reveal whether
    the account exists.

    Args:
        password: Secret presented by the client.
        password_hash: Stored bcrypt hash, or None for an unknown user.

    Returns:
        True only if the secret matches the stored hash.
    """
    encoded = password.encode()
    if password_hash is None or len(encoded) > _BCRYPT_MAX_BYTES:
        bcrypt.checkpw(encoded[:_BCRYPT_MAX_BYTES], DUMMY_HASH)
        return False

    try:
        return bcrypt.checkpw(encoded, password_hash.encode())
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False
