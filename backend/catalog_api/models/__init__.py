"""SQLAlchemy ORM models for the product catalog.

All models are exported from this module for convenient imports:
    from catalog_api.models import User, Product, Image, ...

Models are organized by tier:
- user.py: User (Tier 0)
- verification_token.py: VerificationToken (Tier 0)
- health_check.py: HealthCheck (Tier 0)
- product.py: Product (Tier 1)
- image.py: Image (Tier 2)
"""

from catalog_api.models.base import Base, UTCDateTime, utcnow
from catalog_api.models.health_check import HealthCheck
from catalog_api.models.image import Image
from catalog_api.models.product import Product
from catalog_api.models.user import User
from catalog_api.models.verification_token import VerificationToken

__all__ = [
    # Base classes
    "Base",
    "UTCDateTime",
    "utcnow",
    # Tier 0
    "HealthCheck",
    "User",
    "VerificationToken",
    # Tier 1
    "Product",
    # Tier 2
    "Image",
]
