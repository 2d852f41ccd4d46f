"""Storefront service routers package."""

from services.storefront_service.routers.account import router as account_router
from services.storefront_service.routers.admin_catalog import (
    router as admin_catalog_router,
)
from services.storefront_service.routers.admin_misc import router as admin_misc_router
from services.storefront_service.routers.admin_orders import (
    router as admin_orders_router,
)
from services.storefront_service.routers.cart import router as cart_router
from services.storefront_service.routers.catalog import router as catalog_router
from services.storefront_service.routers.orders import router as orders_router

__all__ = [
    "account_router",
    "admin_catalog_router",
    "admin_misc_router",
    "admin_orders_router",
    "cart_router",
    "catalog_router",
    "orders_router",
]
