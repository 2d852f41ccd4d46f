"""Unit tests for catalog management: products, images and tags."""

import uuid
from decimal import Decimal

import pydantic
import pytest
from libs.common.errors import DuplicateEntry, NotFound, ValidationError
from services.storefront_service.models import CartItem, ProductStatus
from services.storefront_service.schemas import (
    ProductCreate,
    ProductImageCreate,
    ProductUpdate,
    TagCreate,
    TagUpdate,
)
from services.storefront_service.services import catalog_ops
from sqlalchemy import func, select
from tests.factories import (
    CartItemFactory,
    CategoryFactory,
    ProductFactory,
    TagFactory,
    persist,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "name, slug",
    [
        ("Royal Blue Bandhgala", "royal-blue-bandhgala"),
        ("Kurta & Pyjama (Set)", "kurta--pyjama-set"),
        ("Indo-Western 2024", "indo-western-2024"),
    ],
)
def test_slugify(name, slug):
    assert catalog_ops.slugify(name) == slug


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_product_with_images_and_tags(db_session):
    tag = await persist(db_session, TagFactory.create(name="New Arrival"))

    product = await catalog_ops.create_product(
        db_session,
        ProductCreate(
            name="Royal Blue Bandhgala",
            sku="BND-001",
            price=Decimal("4720.00"),
            compare_price=Decimal("5500.00"),
            stock_quantity=4,
            images=[
                ProductImageCreate(image_url="https://cdn.example.com/a.jpg", is_primary=True),
                ProductImageCreate(image_url="https://cdn.example.com/b.jpg"),
            ],
            tag_ids=[tag.id, tag.id],
        ),
    )

    assert product.slug == "royal-blue-bandhgala"
    assert [img.sort_order for img in product.images] == [0, 1]
    assert [t.name for t in product.tags] == ["New Arrival"]


@pytest.mark.unit
def test_compare_price_must_exceed_price_on_create():
    with pytest.raises(pydantic.ValidationError):
        ProductCreate(
            name="Kurta", sku="K-1", price=Decimal("900.00"), compare_price=Decimal("900.00")
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_rejects_compare_price_at_or_below_price(db_session):
    product = await persist(
        db_session,
        ProductFactory.create(price=Decimal("500.00"), compare_price=Decimal("700.00")),
    )

    with pytest.raises(ValidationError):
        await catalog_ops.update_product(
            db_session, product.id, ProductUpdate(price=Decimal("800.00"))
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_rename_regenerates_slug(db_session):
    product = await persist(db_session, ProductFactory.create())

    updated = await catalog_ops.update_product(
        db_session, product.id, ProductUpdate(name="Wine Velvet Sherwani")
    )

    assert updated.slug == "wine-velvet-sherwani"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_duplicate_sku_is_reported(db_session):
    await persist(db_session, ProductFactory.create(sku="DUP-1"))

    with pytest.raises(DuplicateEntry):
        await catalog_ops.create_product(
            db_session, ProductCreate(name="Another", sku="DUP-1", price=Decimal("10.00"))
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_product_returns_storage_paths_and_drops_cart_lines(db_session):
    product = await persist(db_session, ProductFactory.create())
    product_id = product.id
    await catalog_ops.add_image(
        db_session,
        product_id,
        ProductImageCreate(image_url="https://cdn.example.com/x.jpg"),
        max_images=5,
        storage_path=f"{product_id}/x.jpg",
    )
    await persist(db_session, CartItemFactory.create("cust-del", product))

    paths = await catalog_ops.delete_product(db_session, product_id)

    assert paths == [f"{product_id}/x.jpg"]
    remaining = await db_session.execute(
        select(func.count(CartItem.id)).where(CartItem.product_id == product_id)
    )
    assert remaining.scalar_one() == 0
    with pytest.raises(NotFound):
        await catalog_ops.get_product(db_session, product_id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_storefront_lists_only_active_products(db_session):
    category = await persist(db_session, CategoryFactory.create(slug="sherwanis"))
    await persist(
        db_session,
        ProductFactory.create(name="Ivory Sherwani", category_id=category.id, is_featured=True),
        ProductFactory.create(name="Hidden Sherwani", status=ProductStatus.INACTIVE),
        ProductFactory.create(name="Plain Kurta"),
    )

    names = {p.name for p in await catalog_ops.list_active_products(db_session)}
    assert names == {"Ivory Sherwani", "Plain Kurta"}

    by_category = await catalog_ops.list_active_products(db_session, category_slug="sherwanis")
    assert [p.name for p in by_category] == ["Ivory Sherwani"]

    featured = await catalog_ops.list_active_products(db_session, featured=True)
    assert [p.name for p in featured] == ["Ivory Sherwani"]

    searched = await catalog_ops.list_active_products(db_session, search="kurta")
    assert [p.name for p in searched] == ["Plain Kurta"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_product_lookup_by_id_or_slug(db_session):
    product = await persist(db_session, ProductFactory.create(slug="ivory-kurta"))

    by_slug = await catalog_ops.get_active_product(db_session, "ivory-kurta")
    by_id = await catalog_ops.get_active_product(db_session, str(product.id))

    assert by_slug.id == by_id.id == product.id
    with pytest.raises(NotFound):
        await catalog_ops.get_active_product(db_session, "no-such-kurta")


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_first_image_becomes_primary_and_new_primary_demotes_it(db_session):
    product = await persist(db_session, ProductFactory.create())

    first = await catalog_ops.add_image(
        db_session, product.id, ProductImageCreate(image_url="https://cdn.example.com/1.jpg"), max_images=5
    )
    second = await catalog_ops.add_image(
        db_session,
        product.id,
        ProductImageCreate(image_url="https://cdn.example.com/2.jpg", is_primary=True),
        max_images=5,
    )

    refreshed = await catalog_ops.get_product(db_session, product.id)
    primaries = [img.id for img in refreshed.images if img.is_primary]
    assert primaries == [second.id]
    assert first.id in {img.id for img in refreshed.images}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_image_limit_is_enforced(db_session):
    product = await persist(db_session, ProductFactory.create())
    for n in range(2):
        await catalog_ops.add_image(
            db_session,
            product.id,
            ProductImageCreate(image_url=f"https://cdn.example.com/{n}.jpg"),
            max_images=2,
        )

    with pytest.raises(ValidationError) as exc_info:
        await catalog_ops.add_image(
            db_session,
            product.id,
            ProductImageCreate(image_url="https://cdn.example.com/3.jpg"),
            max_images=2,
        )

    assert "at most 2 images" in exc_info.value.message


@pytest.mark.asyncio
@pytest.mark.unit
async def test_image_lookup_on_wrong_product_is_not_found(db_session):
    product = await persist(db_session, ProductFactory.create())
    other = await persist(db_session, ProductFactory.create())
    image = await catalog_ops.add_image(
        db_session, product.id, ProductImageCreate(image_url="https://cdn.example.com/1.jpg"), max_images=5
    )

    with pytest.raises(NotFound):
        await catalog_ops.get_image(db_session, other.id, image.id)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_tags_replaces_the_whole_set(db_session):
    product = await persist(db_session, ProductFactory.create())
    festive, wedding, sale = (
        TagFactory.create(name="Festive", sort_order=1),
        TagFactory.create(name="Wedding", sort_order=2),
        TagFactory.create(name="Sale", sort_order=3),
    )
    await persist(db_session, festive, wedding, sale)

    await catalog_ops.assign_tags(db_session, product.id, [festive.id, wedding.id])
    updated = await catalog_ops.assign_tags(db_session, product.id, [sale.id])

    assert [t.name for t in updated.tags] == ["Sale"]

    cleared = await catalog_ops.assign_tags(db_session, product.id, [])
    assert cleared.tags == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_assign_unknown_tag_changes_nothing(db_session):
    product = await persist(db_session, ProductFactory.create())
    tag = await persist(db_session, TagFactory.create(name="Keep"))
    await catalog_ops.assign_tags(db_session, product.id, [tag.id])

    with pytest.raises(NotFound):
        await catalog_ops.assign_tags(db_session, product.id, [uuid.uuid4()])

    product = await catalog_ops.get_product(db_session, product.id)
    assert [t.name for t in product.tags] == ["Keep"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_tag_crud_and_active_listing(db_session):
    tag = await catalog_ops.create_tag(db_session, TagCreate(name="Limited", sort_order=5))
    await catalog_ops.update_tag(db_session, tag.id, TagUpdate(is_active=False))

    assert tag.id not in {t.id for t in await catalog_ops.list_active_tags(db_session)}
    assert tag.id in {t.id for t in await catalog_ops.list_all_tags(db_session)}

    await catalog_ops.delete_tag(db_session, tag.id)
    with pytest.raises(NotFound):
        await catalog_ops.delete_tag(db_session, tag.id)
