"""Cart and wishlist router.

Anonymous callers can read an empty cart; every mutation needs a signed-in
customer and answers 401 otherwise.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_optional_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.storefront_service.routers._helpers import (
    cart_response,
    wishlist_response,
)
from services.storefront_service.schemas import (
    CartItemCreate,
    CartItemUpdate,
    CartResponse,
    WishlistItemCreate,
    WishlistItemResponse,
)
from services.storefront_service.services import cart_ops, wishlist_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["storefront"])


# ============================================================================
# CART
# ============================================================================


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    if current_user is None:
        return cart_response([])
    return cart_response(await cart_ops.list_lines(db, current_user.user_id))


@router.post("/cart/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    item_in: CartItemCreate,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product to the cart, or bump the quantity of its existing line."""
    await cart_ops.add_item(
        db,
        customer=current_user,
        product_id=item_in.product_id,
        quantity=item_in.quantity,
    )
    return cart_response(await cart_ops.list_lines(db, current_user.user_id))


@router.patch("/cart/items/{line_id}", response_model=CartResponse)
async def update_cart_item(
    line_id: uuid.UUID,
    item_in: CartItemUpdate,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    customer = cart_ops.require_customer(current_user)
    await cart_ops.update_quantity(
        db, customer_id=customer.user_id, line_id=line_id, quantity=item_in.quantity
    )
    return cart_response(await cart_ops.list_lines(db, customer.user_id))


@router.delete("/cart/items/{line_id}", response_model=CartResponse)
async def remove_cart_item(
    line_id: uuid.UUID,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    customer = cart_ops.require_customer(current_user)
    await cart_ops.remove_item(db, customer_id=customer.user_id, line_id=line_id)
    return cart_response(await cart_ops.list_lines(db, customer.user_id))


# ============================================================================
# WISHLIST
# ============================================================================


@router.get("/wishlist", response_model=list[WishlistItemResponse])
async def get_wishlist(
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    customer = cart_ops.require_customer(
        current_user, "Please login to view your wishlist."
    )
    items = await wishlist_ops.list_wishlist(db, customer.user_id)
    return [wishlist_response(item) for item in items]


@router.post(
    "/wishlist",
    response_model=list[WishlistItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_to_wishlist(
    item_in: WishlistItemCreate,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    await wishlist_ops.add_to_wishlist(
        db, customer=current_user, product_id=item_in.product_id
    )
    items = await wishlist_ops.list_wishlist(db, current_user.user_id)
    return [wishlist_response(item) for item in items]


@router.delete("/wishlist/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(
    product_id: uuid.UUID,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    customer = cart_ops.require_customer(
        current_user, "Please login to manage your wishlist."
    )
    await wishlist_ops.remove_from_wishlist(
        db, customer_id=customer.user_id, product_id=product_id
    )
