"""Response builders shared by storefront routers."""

from typing import Iterable, List

from libs.auth.models import AuthUser
from services.storefront_service.models import CartItem, Product, WishlistItem
from services.storefront_service.schemas import (
    CartItemResponse,
    CartProductSummary,
    CartResponse,
    ProductResponse,
    ResolvedImageResponse,
    WishlistItemResponse,
)
from services.storefront_service.services import cart_ops
from services.storefront_service.services.product_images import (
    resolve_product_image,
    resolve_product_images,
)


def product_response(product: Product) -> ProductResponse:
    """Serialize a product with its resolved display image and gallery."""
    gallery = [
        ResolvedImageResponse.model_validate(image)
        for image in resolve_product_images(product)
    ]
    response = ProductResponse.model_validate(product)
    return response.model_copy(update={"display_image": gallery[0], "gallery": gallery})


def product_responses(products: Iterable[Product]) -> List[ProductResponse]:
    return [product_response(p) for p in products]


def product_summary(product: Product) -> CartProductSummary:
    return CartProductSummary(
        id=product.id,
        name=product.name,
        sku=product.sku,
        price=product.price,
        stock_quantity=product.stock_quantity,
        image_url=resolve_product_image(product).url,
    )


def cart_response(lines: List[CartItem]) -> CartResponse:
    return CartResponse(
        items=[
            CartItemResponse(
                id=line.id,
                product_id=line.product_id,
                quantity=line.quantity,
                line_total=cart_ops.cart_total([line]),
                product=product_summary(line.product),
            )
            for line in lines
        ],
        item_count=cart_ops.cart_count(lines),
        total=cart_ops.cart_total(lines),
    )


def wishlist_response(item: WishlistItem) -> WishlistItemResponse:
    return WishlistItemResponse(
        id=item.id,
        product_id=item.product_id,
        created_at=item.created_at,
        product=product_summary(item.product),
    )


def actor(user: AuthUser) -> str:
    """Who to record in history rows for an admin action."""
    return user.email or user.user_id
