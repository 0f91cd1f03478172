"""Ownership policy for products and their images.

A principal owns a product when the product's owning account has the
principal's login handle; an image is owned through its product. Callers
pass rows loaded in the current request, never cached copies.
"""

from catalog_api.core.errors import NotFoundError, NotOwnerError
from catalog_api.models.image import Image
from catalog_api.models.product import Product


def is_owner(product: Product, username: str) -> bool:
    """True if ``username`` owns ``product``."""
    return product.owner.username == username.lower()


def is_image_owner(image: Image, username: str) -> bool:
    """True if ``username`` owns the product ``image`` belongs to."""
    return is_owner(image.product, username)


def ensure_product_owner(
    product: Product | None, username: str, product_id: int
) -> Product:
    """Return the product if ``username`` may mutate it.

    Existence is checked before ownership, so a missing product is always
    404 and a non-owner only ever learns about products that exist.

    Raises:
        NotFoundError: If the product does not exist.
        NotOwnerError: If it belongs to another account.
    """
    if product is None:
        raise NotFoundError("Product", str(product_id))
    if not is_owner(product, username):
        raise NotOwnerError("product")
    return product
