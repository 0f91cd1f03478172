"""Repository for Image metadata operations."""

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.models.base import utcnow
from catalog_api.models.image import Image


class ImageRepository:
    """Stateless repository for Image table operations.

    All methods are static; there is no instance state.
    """

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        product_id: int,
        file_name: str,
        storage_path: str,
    ) -> Image:
        """Record metadata for an object already written to storage.

        Raises:
            sqlalchemy.exc.IntegrityError: If the storage path is taken.
        """
        image = Image(
            product_id=product_id,
            file_name=file_name,
            storage_path=storage_path,
            date_created=utcnow(),
        )
        db.add(image)
        await db.flush()
        await db.refresh(image)
        return image

    @staticmethod
    async def list_for_product(
        db: AsyncSession, product_id: int
    ) -> Sequence[Image]:
        """List a product's images, oldest first."""
        stmt = (
            select(Image).where(Image.product_id == product_id).order_by(Image.id)
        )
        result = await db.execute(stmt)
        return result.scalars().unique().all()

    @staticmethod
    async def get_for_product(
        db: AsyncSession,
        *,
        product_id: int,
        image_id: int,
    ) -> Image | None:
        """Fetch an image only if it belongs to the given product.

        Args:
            db: Async database session.
            product_id: Parent product id from the URL.
            image_id: Image id from the URL.

        Returns:
            Image if it exists under that product, None otherwise.
        """
        stmt = select(Image).where(
            Image.id == image_id,
            Image.product_id == product_id,
        )
        result = await db.execute(stmt)
        return result.unique().scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, image: Image) -> None:
        """Delete one image row."""
        await db.delete(image)
        await db.flush()
