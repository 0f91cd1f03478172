"""API v1 router aggregator.

All v1 endpoint routers are included here and mounted at
settings.api_prefix by main.create_app().
"""

from fastapi import APIRouter

from catalog_api.api.v1 import images, products, users

router = APIRouter()

router.include_router(users.router, prefix="/user", tags=["users"])
router.include_router(products.router, prefix="/product", tags=["products"])
router.include_router(images.router, prefix="/product", tags=["images"])
