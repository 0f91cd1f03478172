"""Product model - a catalog entry owned by exactly one user.

Tier 1, FK to users.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_api.models.base import Base

if TYPE_CHECKING:
    from catalog_api.models.image import Image
    from catalog_api.models.user import User

MIN_QUANTITY = 0
MAX_QUANTITY = 100


class Product(Base):
    """Catalog product.

    Attributes:
        id: Integer primary key.
        name: Display name.
        description: Free-text description.
        sku: Stock keeping unit, unique across all products.
        manufacturer: Manufacturer name.
        quantity: Units on hand, between MIN_QUANTITY and MAX_QUANTITY.
        date_added: Creation timestamp (UTC).
        date_last_updated: Last modification timestamp (UTC).
        owner_user_id: FK to the owning user. Never changes after creation.
    """

    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint(
            f"quantity >= {MIN_QUANTITY} AND quantity <= {MAX_QUANTITY}",
            name="ck_products_quantity_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False)
    sku: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    manufacturer: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    date_added: Mapped[datetime] = mapped_column(nullable=False)
    date_last_updated: Mapped[datetime] = mapped_column(nullable=False)
    owner_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    owner: Mapped["User"] = relationship(
        "User",
        back_populates="products",
        lazy="joined",
    )
    images: Mapped[list["Image"]] = relationship(
        "Image",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="Image.id",
    )
