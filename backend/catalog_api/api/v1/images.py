"""Product image endpoints.

Uploads are multipart with a single ``file`` part. Only jpg, jpeg and
png display names are accepted; the bytes go to the configured storage
backend and the metadata row records where.
"""

from fastapi import APIRouter, Depends, File, Response, UploadFile

from catalog_api.api.deps import CurrentUser, DbSession, RequestLog, Storage
from catalog_api.core.config import settings
from catalog_api.core.file_validation import require_multipart
from catalog_api.schemas.image import ImageResponse
from catalog_api.services.image_service import ImageService

router = APIRouter()


@router.post(
    "/{product_id}/image",
    status_code=201,
    name="api.image.upload",
    dependencies=[Depends(require_multipart)],
)
async def upload_image(
    product_id: int,
    response: Response,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
    file: UploadFile = File(...),
) -> ImageResponse:
    """Upload an image for an owned product."""
    image = await ImageService(db, storage, log).upload(product_id, principal, file)
    await db.commit()

    response.headers["Location"] = (
        f"{settings.api_prefix}/product/{product_id}/image/{image.id}"
    )
    return ImageResponse.model_validate(image)


@router.get("/{product_id}/image", name="api.image.getAll")
async def list_images(
    product_id: int,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> list[ImageResponse]:
    """Public listing of a product's images."""
    images = await ImageService(db, storage, log).list_for_product(product_id)
    return [ImageResponse.model_validate(image) for image in images]


@router.get("/{product_id}/image/{image_id}", name="api.image.get")
async def get_image(
    product_id: int,
    image_id: int,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> ImageResponse:
    """Public lookup of one image's metadata."""
    image = await ImageService(db, storage, log).get(product_id, image_id)
    return ImageResponse.model_validate(image)


@router.delete(
    "/{product_id}/image/{image_id}", status_code=204, name="api.image.delete"
)
async def delete_image(
    product_id: int,
    image_id: int,
    principal: CurrentUser,
    db: DbSession,
    storage: Storage,
    log: RequestLog,
) -> None:
    """Delete an image of an owned product and its stored object."""
    await ImageService(db, storage, log).delete(product_id, image_id, principal)
    await db.commit()
