"""Image model - metadata for one stored object attached to a product.

Tier 2, FK to products.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_api.models.base import Base

if TYPE_CHECKING:
    from catalog_api.models.product import Product


class Image(Base):
    """Product image metadata.

    The bytes live in the storage backend under ``storage_path``; this row
    exists only while that object does.

    Attributes:
        id: Integer primary key (serialized as image_id).
        product_id: FK to the parent product.
        file_name: Display filename supplied at upload.
        storage_path: Backend-specific object path.
        date_created: Upload timestamp (UTC).
    """

    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    storage_path: Mapped[str] = mapped_column(
        String(1024), unique=True, nullable=False
    )
    date_created: Mapped[datetime] = mapped_column(nullable=False)

    product: Mapped["Product"] = relationship(
        "Product",
        back_populates="images",
        lazy="joined",
    )
