"""Product endpoints.

GET is public; every mutation needs a verified principal who owns the
product. Missing products are 404 before ownership is considered.
"""

from fastapi import APIRouter, Response

from catalog_api.api.deps import CurrentUser, DbSession, RequestLog, Storage
from catalog_api.core.config import settings
from catalog_api.schemas.product import ProductCreate, ProductPatch, ProductResponse
from catalog_api.services.product_service import ProductService

router = APIRouter()


@router.post("", status_code=201, name="api.product.create")
async def create_product(
    body: ProductCreate,
    response: Response,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> ProductResponse:
    """Create a product owned by the caller."""
    product = await ProductService(db, storage, log).create(body, principal)
    await db.commit()

    response.headers["Location"] = f"{settings.api_prefix}/product/{product.id}"
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", name="api.product.get")
async def get_product(
    product_id: int,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> ProductResponse:
    """Public product lookup."""
    product = await ProductService(db, storage, log).get(product_id)
    return ProductResponse.model_validate(product)


@router.put("/{product_id}", status_code=204, name="api.product.update")
async def replace_product(
    product_id: int,
    body: ProductCreate,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> None:
    """Replace every writable field of an owned product."""
    await ProductService(db, storage, log).replace(product_id, body, principal)
    await db.commit()


@router.patch("/{product_id}", status_code=204, name="api.product.patch")
async def patch_product(
    product_id: int,
    body: ProductPatch,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> None:
    """Update the supplied fields of an owned product."""
    await ProductService(db, storage, log).patch(product_id, body, principal)
    await db.commit()


@router.delete("/{product_id}", status_code=204, name="api.product.delete")
async def delete_product(
    product_id: int,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> None:
    """Delete an owned product, its images and their stored objects."""
    await ProductService(db, storage, log).delete(product_id, principal)
    await db.commit()
