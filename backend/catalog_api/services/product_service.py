"""Product operations with SKU uniqueness and owner-only mutation."""

from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog.typing import FilteringBoundLogger

from catalog_api.core.errors import ConflictError, InternalError, NotFoundError
from catalog_api.models.product import Product
from catalog_api.models.user import User
from catalog_api.repositories.image_repository import ImageRepository
from catalog_api.repositories.product_repository import ProductRepository
from catalog_api.schemas.product import ProductCreate, ProductPatch
from catalog_api.services.ownership import ensure_product_owner
from catalog_api.storage.base import StorageBackend, StorageError

_SKU_TAKEN = "SKU_ALREADY_EXISTS"


def _sku_conflict() -> ConflictError:
    return ConflictError(
        code=_SKU_TAKEN,
        message="A product with this SKU already exists",
        details=[{"field": "sku", "error": _SKU_TAKEN}],
    )


class ProductService:
    """Product workflows on a request-scoped session.

    Existence, ownership and SKU checks all run before anything is
    written, so a rejected request leaves no partial state.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: StorageBackend,
        log: FilteringBoundLogger | None = None,
    ) -> None:
        self._db = db
        self._storage = storage
        self._log = log or structlog.get_logger()

    async def _ensure_sku_free(self, sku: str, exclude_id: int | None = None) -> None:
        if await ProductRepository.exists_by_sku(self._db, sku, exclude_id=exclude_id):
            raise _sku_conflict()

    async def _load_owned(self, product_id: int, principal: User) -> Product:
        product = await ProductRepository.get_by_id(self._db, product_id)
        return ensure_product_owner(product, principal.username, product_id)

    async def _apply(self, product: Product, changes: dict[str, Any]) -> Product:
        if "sku" in changes and changes["sku"] != product.sku:
            await self._ensure_sku_free(changes["sku"], exclude_id=product.id)
        try:
            return await ProductRepository.update(self._db, product, **changes)
        except IntegrityError as exc:
            await self._db.rollback()
            raise _sku_conflict() from exc

    async def create(self, body: ProductCreate, owner: User) -> Product:
        """Create a product owned by the principal.

        Raises:
            ConflictError: If the SKU is already in use.
        """
        await self._ensure_sku_free(body.sku)
        try:
            product = await ProductRepository.create(
                self._db, owner_user_id=owner.id, **body.model_dump()
            )
        except IntegrityError as exc:
            await self._db.rollback()
            raise _sku_conflict() from exc

        self._log.info("product_created", product_id=product.id, sku=product.sku)
        return product

    async def get(self, product_id: int) -> Product:
        """Fetch a product for public display.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await ProductRepository.get_by_id(self._db, product_id)
        if product is None:
            raise NotFoundError("Product", str(product_id))
        return product

    async def replace(
        self, product_id: int, body: ProductCreate, principal: User
    ) -> Product:
        """Overwrite every writable field (PUT)."""
        product = await self._load_owned(product_id, principal)
        product = await self._apply(product, body.model_dump())
        self._log.info("product_replaced", product_id=product_id)
        return product

    async def patch(
        self, product_id: int, body: ProductPatch, principal: User
    ) -> Product:
        """Overwrite only the supplied fields (PATCH).

        An empty body is accepted and changes nothing.
        """
        product = await self._load_owned(product_id, principal)
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            return product
        product = await self._apply(product, changes)
        self._log.info("product_patched", product_id=product_id, fields=sorted(changes))
        return product

    async def delete(self, product_id: int, principal: User) -> None:
        """Delete a product together with its images.

        Each image goes object first, then row. If the backend fails
        partway, the rows already removed are committed and the rest are
        kept with their objects intact, so every remaining row still
        points at a stored object. The product itself is only deleted
        once all of its images are gone.

        Raises:
            NotFoundError: If the product does not exist.
            NotOwnerError: If it belongs to another account.
            InternalError: If the storage backend fails.
        """
        product = await self._load_owned(product_id, principal)

        images = await ImageRepository.list_for_product(self._db, product.id)
        for image in images:
            try:
                await self._storage.delete(image.storage_path)
            except StorageError as exc:
                self._log.error(
                    "product_delete_storage_failed",
                    product_id=product_id,
                    image_id=image.id,
                )
                # Persist row deletions for the objects already removed
                await self._db.commit()
                raise InternalError("Failed to delete product images") from exc
            await ImageRepository.delete(self._db, image)

        await ProductRepository.delete(self._db, product)
        self._log.info("product_deleted", product_id=product_id)
