"""Pydantic request/response schemas for API endpoints."""

from catalog_api.schemas.image import ImageResponse
from catalog_api.schemas.product import ProductCreate, ProductPatch, ProductResponse
from catalog_api.schemas.user import UserCreate, UserResponse, UserUpdate

__all__ = [
    # Users
    "UserCreate",
    "UserResponse",
    "UserUpdate",
    # Products
    "ProductCreate",
    "ProductPatch",
    "ProductResponse",
    # Images
    "ImageResponse",
]
