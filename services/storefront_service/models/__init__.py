"""Storefront service models package."""

from services.storefront_service.models.accounts import (
    AdminUser,
    CustomerProfile,
    PhoneAuth,
)
from services.storefront_service.models.catalog import (
    Category,
    Product,
    ProductImage,
    ProductTag,
    ProductTagAssignment,
)
from services.storefront_service.models.commerce import (
    CartItem,
    CheckoutSession,
    Order,
    OrderItem,
    OrderStatusHistory,
    Refund,
    WishlistItem,
    generate_order_number,
)
from services.storefront_service.models.contact import ContactSubmission
from services.storefront_service.models.enums import (
    CheckoutSessionStatus,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
    RefundStatus,
)

__all__ = [
    # Accounts
    "AdminUser",
    "CustomerProfile",
    "PhoneAuth",
    # Catalog
    "Category",
    "Product",
    "ProductImage",
    "ProductTag",
    "ProductTagAssignment",
    # Commerce
    "CartItem",
    "CheckoutSession",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "Refund",
    "WishlistItem",
    "generate_order_number",
    # Contact
    "ContactSubmission",
    # Enums
    "CheckoutSessionStatus",
    "OrderStatus",
    "PaymentStatus",
    "ProductStatus",
    "RefundStatus",
]
