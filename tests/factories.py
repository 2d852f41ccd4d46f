"""
Model factories and fakes for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(price=Decimal("500.00"))
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from jose import jwt

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _short() -> str:
    return uuid.uuid4().hex[:8]


async def persist(db, *instances):
    """Add and commit instances, returning the first (or all)."""
    db.add_all(instances)
    await db.commit()
    return instances[0] if len(instances) == 1 else instances


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def make_customer(user_id: Optional[str] = None, **overrides):
    from libs.auth.models import AuthUser

    data = {
        "sub": user_id or f"cust-{_short()}",
        "email": "customer@example.com",
        "role": "authenticated",
    }
    data.update(overrides)
    return AuthUser(**data)


def customer_headers(user_id: str, email: str = "customer@example.com") -> dict:
    """Bearer headers carrying a Supabase-style customer token."""
    from libs.common.config import get_settings

    now = _now()
    token = jwt.encode(
        {
            "sub": user_id,
            "email": email,
            "role": "authenticated",
            "aud": "authenticated",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        },
        get_settings().SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def admin_headers(email: str = "owner@example.com") -> dict:
    from libs.auth.dependencies import create_admin_token

    return {"Authorization": f"Bearer {create_admin_token(str(_uuid()), email)}"}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class CategoryFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import Category

        suffix = _short()
        defaults = {
            "id": _uuid(),
            "name": f"Sherwanis {suffix}",
            "slug": f"sherwanis-{suffix}",
            "is_active": True,
        }
        defaults.update(overrides)
        return Category(**defaults)


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import Product, ProductStatus

        suffix = _short()
        defaults = {
            "id": _uuid(),
            "name": f"Test Sherwani {suffix}",
            "slug": f"test-sherwani-{suffix}",
            "sku": f"SKU-{suffix}",
            "price": Decimal("500.00"),
            "stock_quantity": 10,
            "status": ProductStatus.ACTIVE,
            "is_featured": False,
        }
        defaults.update(overrides)
        return Product(**defaults)


class TagFactory:
    @staticmethod
    def create(**overrides):
        from services.storefront_service.models import ProductTag

        defaults = {
            "id": _uuid(),
            "name": f"Tag {_short()}",
            "background_color": "#3B82F6",
            "text_color": "#FFFFFF",
            "sort_order": 0,
            "is_active": True,
        }
        defaults.update(overrides)
        return ProductTag(**defaults)


# ---------------------------------------------------------------------------
# Commerce
# ---------------------------------------------------------------------------


class CartItemFactory:
    @staticmethod
    def create(customer_id: str, product, **overrides):
        from services.storefront_service.models import CartItem

        defaults = {
            "id": _uuid(),
            "customer_id": customer_id,
            "product_id": product.id,
            "quantity": 1,
        }
        defaults.update(overrides)
        return CartItem(**defaults)


class OrderFactory:
    @staticmethod
    def create(customer_id: str = "cust-orders", products=(), quantity: int = 1, **overrides):
        """An order with one line per product at the product's price."""
        from services.storefront_service.models import (
            Order,
            OrderItem,
            OrderStatus,
            PaymentStatus,
            generate_order_number,
        )

        items = [
            OrderItem(
                product_id=p.id,
                product_name=p.name,
                product_sku=p.sku,
                quantity=quantity,
                unit_price=p.price,
                total_price=p.price * quantity,
            )
            for p in products
        ]
        subtotal = sum((i.total_price for i in items), Decimal("0.00"))
        defaults = {
            "id": _uuid(),
            "order_number": generate_order_number(),
            "customer_id": customer_id,
            "email": "customer@example.com",
            "subtotal": subtotal,
            "tax_amount": Decimal("0.00"),
            "shipping_amount": Decimal("0.00"),
            "discount_amount": Decimal("0.00"),
            "total_amount": subtotal,
            "status": OrderStatus.PROCESSING,
            "payment_status": PaymentStatus.COMPLETED,
            "created_at": _now(),
        }
        defaults.update(overrides)
        order = Order(**defaults)
        order.items = items
        return order


class AdminUserFactory:
    @staticmethod
    def create(password: str = "correct-horse", **overrides):
        from libs.auth.passwords import hash_password
        from services.storefront_service.models import AdminUser

        defaults = {
            "id": _uuid(),
            "email": f"admin-{_short()}@example.com",
            "full_name": "Store Owner",
            "password_hash": hash_password(password),
            "is_active": True,
        }
        defaults.update(overrides)
        return AdminUser(**defaults)


# ---------------------------------------------------------------------------
# External service fakes
# ---------------------------------------------------------------------------


class FakeIdentityProvider:
    """Records calls instead of talking to Supabase Auth."""

    def __init__(self):
        self.users: dict[str, Any] = {}
        self.created: list[str] = []
        self.magic_links: list[str] = []

    async def create_phone_user(self, phone: str, user_metadata: dict):
        from libs.auth.identity import IdentityUser

        user = IdentityUser(
            id=str(_uuid()), phone=phone, user_metadata=dict(user_metadata)
        )
        self.users[user.id] = user
        self.created.append(phone)
        return user

    async def get_user(self, user_id: str):
        return self.users.get(user_id)

    async def generate_magic_link(self, email: str) -> Optional[str]:
        self.magic_links.append(email)
        return f"https://auth.example.com/verify?email={email}"


class FakeStorage:
    """In-memory stand-in for StorageService."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []

    async def upload_product_image(self, product_id, filename, data, content_type):
        from services.storefront_service.storage import build_storage_path

        path = build_storage_path(product_id, filename)
        self.objects[path] = data
        return f"https://cdn.example.com/product-images/{path}", path

    async def delete_object(self, path: str) -> bool:
        self.deleted.append(path)
        return self.objects.pop(path, None) is not None
