"""Product schemas.

REPLACE (PUT) requires every writable field; PATCH accepts any subset.
owner_user_id and the timestamps are server-assigned and never writable.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from catalog_api.models.product import MAX_QUANTITY, MIN_QUANTITY
from catalog_api.schemas.common import LongText, NonBlank


class ProductCreate(BaseModel):
    """Request body for POST /product and PUT /product/{id}."""

    model_config = ConfigDict(extra="forbid")

    name: NonBlank
    description: LongText
    sku: NonBlank
    manufacturer: NonBlank
    quantity: int = Field(ge=MIN_QUANTITY, le=MAX_QUANTITY, strict=True)


class ProductPatch(BaseModel):
    """Request body for PATCH /product/{id}.

    Absent fields keep their stored value. Every supplied value is held to
    the same rules as on create; an explicit null is rejected.
    """

    model_config = ConfigDict(extra="forbid")

    name: NonBlank = Field(default=None)  # type: ignore[assignment]
    description: LongText = Field(default=None)  # type: ignore[assignment]
    sku: NonBlank = Field(default=None)  # type: ignore[assignment]
    manufacturer: NonBlank = Field(default=None)  # type: ignore[assignment]
    quantity: int = Field(
        default=None,  # type: ignore[arg-type]
        ge=MIN_QUANTITY,
        le=MAX_QUANTITY,
        strict=True,
    )


class ProductResponse(BaseModel):
    """Product representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    sku: str
    manufacturer: str
    quantity: int
    date_added: datetime
    date_last_updated: datetime
    owner_user_id: int
