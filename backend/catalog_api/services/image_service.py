"""Product image operations: upload, list, read, delete.

Uploads store the object first and insert the metadata row second. If
the insert fails, the object is deleted again so storage never keeps an
object without a row.
"""

from collections.abc import Sequence

import structlog
from fastapi import UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from catalog_api.core.errors import InternalError, NotFoundError
from catalog_api.core.file_validation import (
    read_file_with_size_limit,
    validate_image_upload,
)
from catalog_api.models.image import Image
from catalog_api.models.product import Product
from catalog_api.models.user import User
from catalog_api.repositories.image_repository import ImageRepository
from catalog_api.repositories.product_repository import ProductRepository
from catalog_api.services.ownership import ensure_product_owner
from catalog_api.storage.base import StorageBackend, StorageError


class ImageService:
    """Image workflows on a request-scoped session."""

    def __init__(
        self,
        db: AsyncSession,
        storage: StorageBackend,
        log: FilteringBoundLogger | None = None,
    ) -> None:
        self._db = db
        self._storage = storage
        self._log = log or structlog.get_logger()

    async def _get_product(self, product_id: int) -> Product:
        product = await ProductRepository.get_by_id(self._db, product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    async def upload(
        self,
        product_id: int,
        principal: User,
        file: UploadFile,
    ) -> Image:
        """Attach an image to an owned product.

        Existence and ownership are checked before the upload is read, so
        only the owner ever learns about size or type problems.

        Raises:
            NotFoundError: If the product does not exist.
            NotOwnerError: If it belongs to another account.
            ValidationError: If the file is empty, too large, or not a
                jpg/jpeg/png.
            InternalError: If the storage backend or the insert fails.
        """
        product = ensure_product_owner(
            await ProductRepository.get_by_id(self._db, product_id),
            principal.username,
            product_id,
        )
        content = await read_file_with_size_limit(file)
        display_name = validate_image_upload(file.filename, content)

        try:
            path = await self._storage.store(
                content,
                owner_id=product.owner_user_id,
                resource_id=product.id,
                display_name=display_name,
            )
        except StorageError as exc:
            self._log.error("image_store_failed", product_id=product_id)
            raise InternalError("Failed to store image") from exc

        try:
            image = await ImageRepository.create(
                self._db,
                product_id=product.id,
                file_name=display_name,
                storage_path=path,
            )
        except SQLAlchemyError as exc:
            await self._db.rollback()
            self._log.error("image_insert_failed", product_id=product_id, path=path)
            try:
                await self._storage.delete(path)
            except StorageError:
                self._log.error("image_cleanup_failed", path=path)
            raise InternalError("Failed to record image") from exc

        self._log.info("image_uploaded", product_id=product_id, image_id=image.id)
        return image

    async def list_for_product(self, product_id: int) -> Sequence[Image]:
        """List a product's images.

        Raises:
            NotFoundError: If the product does not exist.
        """
        await self._get_product(product_id)
        return await ImageRepository.list_for_product(self._db, product_id)

    async def get(self, product_id: int, image_id: int) -> Image:
        """Fetch one image of a product.

        Raises:
            NotFoundError: If the product or the image does not exist, or
                the image belongs to a different product.
        """
        await self._get_product(product_id)
        image = await ImageRepository.get_for_product(
            self._db, product_id=product_id, image_id=image_id
        )
        if image is None:
            raise NotFoundError("Image", str(image_id))
        return image

    async def delete(self, product_id: int, image_id: int, principal: User) -> None:
        """Delete an image of an owned product.

        The stored object is removed before the row; a storage failure
        keeps the row.

        Raises:
            NotFoundError: If the product or image does not exist.
            NotOwnerError: If the product belongs to another account.
            InternalError: If the storage backend fails.
        """
        ensure_product_owner(
            await ProductRepository.get_by_id(self._db, product_id),
            principal.username,
            product_id,
        )
        image = await ImageRepository.get_for_product(
            self._db, product_id=product_id, image_id=image_id
        )
        if image is None:
            raise NotFoundError("Image", str(image_id))

        try:
            await self._storage.delete(image.storage_path)
        except StorageError as exc:
            self._log.error("image_delete_storage_failed", image_id=image_id)
            raise InternalError("Failed to delete image") from exc

        await ImageRepository.delete(self._db, image)
        self._log.info("image_deleted", product_id=product_id, image_id=image_id)
