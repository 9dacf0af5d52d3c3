"""Top-level router: include all page modules."""

from fastapi import APIRouter

from storefront.api import admin, auth, shop

api_router = APIRouter()

api_router.include_router(shop.router)
api_router.include_router(auth.router)
api_router.include_router(admin.router)
