"""Wishlist operations."""

import uuid
from typing import List, Optional

from libs.auth.models import AuthUser
from libs.common.errors import NotFound
from libs.db.session import commit_or_raise
from services.storefront_service.models import Product, ProductStatus, WishlistItem
from services.storefront_service.services.cart_ops import require_customer
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload


async def list_wishlist(db: AsyncSession, customer_id: str) -> List[WishlistItem]:
    result = await db.execute(
        select(WishlistItem)
        .where(WishlistItem.customer_id == customer_id)
        .options(selectinload(WishlistItem.product).selectinload(Product.images))
        .order_by(WishlistItem.created_at.desc())
    )
    return list(result.scalars().all())


async def is_in_wishlist(
    db: AsyncSession, customer_id: str, product_id: uuid.UUID
) -> bool:
    result = await db.execute(
        select(WishlistItem.id).where(
            WishlistItem.customer_id == customer_id,
            WishlistItem.product_id == product_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def add_to_wishlist(
    db: AsyncSession,
    *,
    customer: Optional[AuthUser],
    product_id: uuid.UUID,
) -> WishlistItem:
    """Save a product; saving it twice returns the existing entry."""
    customer = require_customer(customer, "Please login to save items to your wishlist.")

    product = await db.get(Product, product_id)
    if product is None or product.status != ProductStatus.ACTIVE:
        raise NotFound("Product not found.")

    result = await db.execute(
        select(WishlistItem).where(
            WishlistItem.customer_id == customer.user_id,
            WishlistItem.product_id == product_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    item = WishlistItem(customer_id=customer.user_id, product_id=product_id)
    db.add(item)
    await commit_or_raise(db, "wishlist.add")
    return item


async def remove_from_wishlist(
    db: AsyncSession, *, customer_id: str, product_id: uuid.UUID
) -> None:
    await db.execute(
        delete(WishlistItem).where(
            WishlistItem.customer_id == customer_id,
            WishlistItem.product_id == product_id,
        )
    )
    await commit_or_raise(db, "wishlist.remove")
