"""User model - the account owning products.

Tier 0, no FK dependencies.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_api.models.base import Base

if TYPE_CHECKING:
    from catalog_api.models.product import Product


class User(Base):
    """Registered account.

    Attributes:
        id: Integer primary key.
        username: Unique, lower-cased email address used as login handle.
        password_hash: bcrypt hash. Never serialized.
        first_name: Given name.
        last_name: Family name.
        verified: Set once the emailed token has been consumed.
        account_created: Creation timestamp (UTC).
        account_updated: Last modification timestamp (UTC).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )
    account_created: Mapped[datetime] = mapped_column(nullable=False)
    account_updated: Mapped[datetime] = mapped_column(nullable=False)

    products: Mapped[list["Product"]] = relationship(
        "Product",
        back_populates="owner",
        passive_deletes=True,
    )
