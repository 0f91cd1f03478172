"""Repository for Product CRUD operations."""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models.base import utcnow
from catalog_api.models.product import Product

# Fields that may be updated via ProductRepository.update().
# Security: owner_user_id is set once at creation and never reassigned.
_UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "description",
        "sku",
        "manufacturer",
        "quantity",
    }
)


class ProductRepository:
    """Stateless repository for Product table operations.

    All methods are static; there is no instance state.
    """

    @staticmethod
    async def get_by_id(db: AsyncSession, product_id: int) -> Product | None:
        """Fetch a product (with owner and images) by primary key."""
        return await db.get(Product, product_id)

    @staticmethod
    async def exists_by_sku(
        db: AsyncSession,
        sku: str,
        *,
        exclude_id: int | None = None,
    ) -> bool:
        """Check whether a SKU is already used by another product.

        Args:
            db: Async database session.
            sku: Stock keeping unit to look up.
            exclude_id: Product to ignore (the one being updated).

        Returns:
            True if some other product has this SKU.
        """
        conditions = [Product.sku == sku]
        if exclude_id is not None:
            conditions.append(Product.id != exclude_id)
        result = await db.execute(select(exists().where(*conditions)))
        return bool(result.scalar())

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        owner_user_id: int,
        name: str,
        description: str,
        sku: str,
        manufacturer: str,
        quantity: int,
    ) -> Product:
        """Create a product owned by ``owner_user_id``.

        Raises:
            sqlalchemy.exc.IntegrityError: If the SKU already exists.
        """
        now = utcnow()
        product = Product(
            owner_user_id=owner_user_id,
            name=name,
            description=description,
            sku=sku,
            manufacturer=manufacturer,
            quantity=quantity,
            date_added=now,
            date_last_updated=now,
        )
        db.add(product)
        await db.flush()
        await db.refresh(product)
        return product

    @staticmethod
    async def update(
        db: AsyncSession,
        product: Product,
        **kwargs: str | int,
    ) -> Product:
        """Apply field changes to a loaded product and stamp date_last_updated.

        Args:
            db: Async database session.
            product: Product already loaded in this session.
            **kwargs: Field names and values to update.

        Returns:
            The updated product.

        Raises:
            ValueError: If an unknown field name is passed.
            sqlalchemy.exc.IntegrityError: If the new SKU already exists.
        """
        unknown = set(kwargs) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Unknown fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        for field, value in kwargs.items():
            setattr(product, field, value)
        product.date_last_updated = utcnow()

        await db.flush()
        return product

    @staticmethod
    async def delete(db: AsyncSession, product: Product) -> None:
        """Delete a product; its image rows go with it via ORM cascade."""
        # Reload the collection so the cascade sees every current image
        await db.refresh(product, attribute_names=["images"])
        await db.delete(product)
        await db.flush()
