"""Image metadata schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ImageResponse(BaseModel):
    """Image metadata representation.

    Attributes:
        image_id: Image id (read from the ORM ``id`` attribute).
        product_id: Parent product id.
        file_name: Display filename supplied at upload.
        date_created: Upload timestamp (UTC).
        storage_path: Backend object path, partitioned by owner and product.
    """

    model_config = ConfigDict(from_attributes=True)

    image_id: int = Field(validation_alias="id")
    product_id: int
    file_name: str
    date_created: datetime
    storage_path: str
