"""User account schemas.

Writable shapes carry only client-owned fields. Server-assigned fields
(id, verified, timestamps) are rejected as unknown by extra="forbid".
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from catalog_api.schemas.common import NonBlank

# bcrypt only uses the first 72 bytes; longer secrets are refused up front
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 72


class UserCreate(BaseModel):
    """Request body for POST /user."""

    model_config = ConfigDict(extra="forbid")

    username: EmailStr
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH
    )
    first_name: NonBlank
    last_name: NonBlank


class UserUpdate(BaseModel):
    """Request body for PUT /user/{id}.

    Only first_name, last_name and password may change. Absent fields keep
    their stored value; an explicit null is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    first_name: NonBlank = Field(default=None)  # type: ignore[assignment]
    last_name: NonBlank = Field(default=None)  # type: ignore[assignment]
    password: str = Field(
        default=None,  # type: ignore[arg-type]
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
    )


class UserResponse(BaseModel):
    """Account representation. Never includes the password hash.

    Attributes:
        id: Account id.
        username: Lower-cased login handle.
        first_name: Given name.
        last_name: Family name.
        verified: Whether the email verification flow has completed.
        account_created: Creation timestamp (UTC).
        account_updated: Last modification timestamp (UTC).
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str
    last_name: str
    verified: bool
    account_created: datetime
    account_updated: datetime
