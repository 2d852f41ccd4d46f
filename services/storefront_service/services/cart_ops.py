"""Cart operations.

Every function takes the customer explicitly; nothing reads ambient identity.
Totals are derived from the current lines and product prices on every read.
"""

import uuid
from decimal import Decimal
from typing import List, Optional, Sequence

from libs.auth.models import AuthUser
from libs.common.currency import ZERO, to_money
from libs.common.errors import NotFound, Unauthenticated, ValidationError
from libs.common.logging import get_logger
from libs.db.session import commit_or_raise
from services.storefront_service.models import CartItem, Product, ProductStatus
from services.storefront_service.services.pricing import PricedLine
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please login to add items to your cart."


def require_customer(customer: Optional[AuthUser], message: str = LOGIN_REQUIRED_MESSAGE) -> AuthUser:
    if customer is None:
        raise Unauthenticated(message)
    return customer


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_lines(db: AsyncSession, customer_id: str) -> List[CartItem]:
    """The customer's cart lines with products (and their images) loaded."""
    result = await db.execute(
        select(CartItem)
        .where(CartItem.customer_id == customer_id)
        .options(selectinload(CartItem.product).selectinload(Product.images))
        .order_by(CartItem.created_at, CartItem.id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def cart_total(lines: Sequence[CartItem]) -> Decimal:
    """Sum of quantity x current product price."""
    return to_money(
        sum((Decimal(line.product.price) * line.quantity for line in lines), ZERO)
    )


def cart_count(lines: Sequence[CartItem]) -> int:
    return sum(line.quantity for line in lines)


def snapshot_lines(lines: Sequence[CartItem]) -> List[PricedLine]:
    """Freeze cart lines at the products' current name, sku and price."""
    return [
        PricedLine(
            product_id=line.product_id,
            product_name=line.product.name,
            product_sku=line.product.sku,
            unit_price=to_money(line.product.price),
            quantity=line.quantity,
        )
        for line in lines
    ]


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def add_item(
    db: AsyncSession,
    *,
    customer: Optional[AuthUser],
    product_id: uuid.UUID,
    quantity: int = 1,
) -> CartItem:
    """Add ``quantity`` of a product, incrementing an existing line."""
    customer = require_customer(customer)
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1.")

    product = await db.get(Product, product_id)
    if product is None or product.status != ProductStatus.ACTIVE:
        raise NotFound("Product not found.")

    result = await db.execute(
        select(CartItem).where(
            CartItem.customer_id == customer.user_id,
            CartItem.product_id == product_id,
        )
    )
    line = result.scalar_one_or_none()

    if line:
        line.quantity += quantity
    else:
        line = CartItem(
            customer_id=customer.user_id,
            product_id=product_id,
            quantity=quantity,
        )
        db.add(line)

    await commit_or_raise(db, "cart.add_item")
    logger.info(
        "Cart add: customer=%s product=%s qty=%d (line qty=%d)",
        customer.user_id,
        product_id,
        quantity,
        line.quantity,
    )
    return line


async def update_quantity(
    db: AsyncSession,
    *,
    customer_id: str,
    line_id: uuid.UUID,
    quantity: int,
) -> Optional[CartItem]:
    """Set a line's quantity; zero or less removes the line and returns None."""
    if quantity <= 0:
        await remove_item(db, customer_id=customer_id, line_id=line_id)
        return None

    result = await db.execute(
        select(CartItem).where(
            CartItem.id == line_id,
            CartItem.customer_id == customer_id,
        )
    )
    line = result.scalar_one_or_none()
    if line is None:
        raise NotFound("Cart item not found.")

    line.quantity = quantity
    await commit_or_raise(db, "cart.update_quantity")
    return line


async def remove_item(
    db: AsyncSession, *, customer_id: str, line_id: uuid.UUID
) -> None:
    """Delete a line. Removing a line that is already gone is not an error."""
    await db.execute(
        delete(CartItem).where(
            CartItem.id == line_id,
            CartItem.customer_id == customer_id,
        )
    )
    await commit_or_raise(db, "cart.remove_item")


async def clear_cart(
    db: AsyncSession, *, customer_id: str, commit: bool = True
) -> None:
    """Delete all of a customer's lines.

    Checkout passes ``commit=False`` to keep the delete inside its own
    transaction.
    """
    await db.execute(delete(CartItem).where(CartItem.customer_id == customer_id))
    if commit:
        await commit_or_raise(db, "cart.clear")
