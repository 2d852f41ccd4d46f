"""Catalog reads for customers and product/tag management for admins."""

import re
import uuid
from typing import List, Optional, Sequence

from libs.common.errors import NotFound, ValidationError
from libs.common.logging import get_logger
from libs.db.session import commit_or_raise
from services.storefront_service.models import (
    Category,
    Product,
    ProductImage,
    ProductStatus,
    ProductTag,
    ProductTagAssignment,
)
from services.storefront_service.schemas import (
    ProductCreate,
    ProductImageCreate,
    ProductUpdate,
    TagCreate,
    TagUpdate,
)
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

_SLUG_STRIP = re.compile(r"[^a-z0-9-]")


def slugify(name: str) -> str:
    """Lowercase, spaces to dashes, drop everything else."""
    return _SLUG_STRIP.sub("", name.lower().replace(" ", "-"))


def _with_relations(stmt):
    return stmt.options(
        selectinload(Product.images),
        selectinload(Product.tags),
    )


# ---------------------------------------------------------------------------
# Customer-facing reads
# ---------------------------------------------------------------------------


async def list_active_products(
    db: AsyncSession,
    *,
    category_slug: Optional[str] = None,
    featured: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[Product]:
    query = _with_relations(
        select(Product).where(Product.status == ProductStatus.ACTIVE)
    )
    if category_slug:
        query = query.join(Category, Product.category_id == Category.id).where(
            Category.slug == category_slug
        )
    if featured is not None:
        query = query.where(Product.is_featured == featured)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )
    result = await db.execute(query.order_by(Product.created_at.desc()))
    return list(result.scalars().unique().all())


async def get_active_product(db: AsyncSession, product_ref: str) -> Product:
    """Look up an active product by id or slug."""
    query = _with_relations(
        select(Product).where(Product.status == ProductStatus.ACTIVE)
    )
    try:
        query = query.where(Product.id == uuid.UUID(product_ref))
    except ValueError:
        query = query.where(Product.slug == product_ref)

    product = (await db.execute(query)).scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found.")
    return product


async def list_categories(db: AsyncSession) -> List[Category]:
    result = await db.execute(
        select(Category)
        .where(Category.is_active.is_(True))
        .order_by(Category.sort_order, Category.name)
    )
    return list(result.scalars().all())


async def list_active_tags(db: AsyncSession) -> List[ProductTag]:
    result = await db.execute(
        select(ProductTag)
        .where(ProductTag.is_active.is_(True))
        .order_by(ProductTag.sort_order, ProductTag.name)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Admin: products
# ---------------------------------------------------------------------------


async def get_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    """Any product regardless of status, with images and tags loaded."""
    result = await db.execute(
        _with_relations(select(Product).where(Product.id == product_id))
        .execution_options(populate_existing=True)
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise NotFound("Product not found.")
    return product


async def list_all_products(
    db: AsyncSession,
    *,
    status: Optional[ProductStatus] = None,
    search: Optional[str] = None,
) -> List[Product]:
    query = _with_relations(select(Product))
    if status:
        query = query.where(Product.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))
    result = await db.execute(query.order_by(Product.created_at.desc()))
    return list(result.scalars().all())


async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
    slug = data.slug or slugify(data.name)
    if not slug:
        raise ValidationError("Product name must contain letters or numbers.")

    product = Product(
        id=uuid.uuid4(),
        name=data.name,
        slug=slug,
        sku=data.sku,
        description=data.description,
        price=data.price,
        compare_price=data.compare_price,
        stock_quantity=data.stock_quantity,
        status=data.status,
        is_featured=data.is_featured,
        category_id=data.category_id,
    )
    db.add(product)

    for position, image in enumerate(data.images):
        db.add(_image_row(product.id, image, default_order=position))
    for tag_id in dict.fromkeys(data.tag_ids):
        db.add(ProductTagAssignment(product_id=product.id, tag_id=tag_id))

    await commit_or_raise(db, "catalog.create_product")
    logger.info("Created product %s (%s)", product.id, product.sku)
    return await get_product(db, product.id)


async def update_product(
    db: AsyncSession, product_id: uuid.UUID, data: ProductUpdate
) -> Product:
    product = await get_product(db, product_id)
    changes = data.model_dump(exclude_unset=True)

    if "name" in changes and "slug" not in changes:
        changes["slug"] = slugify(changes["name"])

    price = changes.get("price", product.price)
    compare_price = changes.get("compare_price", product.compare_price)
    if compare_price is not None and compare_price <= price:
        raise ValidationError("Compare price must be greater than price.")

    for field, value in changes.items():
        setattr(product, field, value)

    await commit_or_raise(db, "catalog.update_product")
    return await get_product(db, product_id)


async def delete_product(db: AsyncSession, product_id: uuid.UUID) -> List[str]:
    """Delete a product. Returns storage paths of its uploaded images."""
    product = await get_product(db, product_id)
    storage_paths = [img.storage_path for img in product.images if img.storage_path]
    await db.delete(product)
    await commit_or_raise(db, "catalog.delete_product")
    logger.info("Deleted product %s", product_id)
    return storage_paths


# ---------------------------------------------------------------------------
# Admin: images
# ---------------------------------------------------------------------------


def _image_row(
    product_id: uuid.UUID,
    image: ProductImageCreate,
    *,
    default_order: int = 0,
    storage_path: Optional[str] = None,
) -> ProductImage:
    return ProductImage(
        product_id=product_id,
        image_url=image.image_url,
        alt_text=image.alt_text,
        is_primary=image.is_primary,
        sort_order=image.sort_order or default_order,
        storage_path=storage_path,
    )


async def count_images(db: AsyncSession, product_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(ProductImage.id)).where(ProductImage.product_id == product_id)
    )
    return result.scalar_one()


async def add_image(
    db: AsyncSession,
    product_id: uuid.UUID,
    image: ProductImageCreate,
    *,
    max_images: int,
    storage_path: Optional[str] = None,
) -> ProductImage:
    """Attach an image; a new primary image demotes the previous one."""
    await get_product(db, product_id)
    existing = await count_images(db, product_id)
    if existing >= max_images:
        raise ValidationError(f"A product can have at most {max_images} images.")

    if image.is_primary or existing == 0:
        await _clear_primary(db, product_id)
        image = image.model_copy(update={"is_primary": True})

    row = _image_row(product_id, image, default_order=existing, storage_path=storage_path)
    db.add(row)
    await commit_or_raise(db, "catalog.add_image")
    return row


async def _clear_primary(db: AsyncSession, product_id: uuid.UUID) -> None:
    result = await db.execute(
        select(ProductImage).where(
            ProductImage.product_id == product_id,
            ProductImage.is_primary.is_(True),
        )
    )
    for img in result.scalars():
        img.is_primary = False


async def get_image(
    db: AsyncSession, product_id: uuid.UUID, image_id: uuid.UUID
) -> ProductImage:
    result = await db.execute(
        select(ProductImage).where(
            ProductImage.id == image_id,
            ProductImage.product_id == product_id,
        )
    )
    image = result.scalar_one_or_none()
    if image is None:
        raise NotFound("Image not found.")
    return image


async def delete_image(db: AsyncSession, image: ProductImage) -> None:
    await db.delete(image)
    await commit_or_raise(db, "catalog.delete_image")


# ---------------------------------------------------------------------------
# Admin: tags
# ---------------------------------------------------------------------------


async def list_all_tags(db: AsyncSession) -> List[ProductTag]:
    result = await db.execute(
        select(ProductTag).order_by(ProductTag.sort_order, ProductTag.name)
    )
    return list(result.scalars().all())


async def create_tag(db: AsyncSession, data: TagCreate) -> ProductTag:
    tag = ProductTag(**data.model_dump())
    db.add(tag)
    await commit_or_raise(db, "tags.create")
    return tag


async def update_tag(db: AsyncSession, tag_id: uuid.UUID, data: TagUpdate) -> ProductTag:
    tag = await db.get(ProductTag, tag_id)
    if tag is None:
        raise NotFound("Tag not found.")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(tag, field, value)
    await commit_or_raise(db, "tags.update")
    return tag


async def delete_tag(db: AsyncSession, tag_id: uuid.UUID) -> None:
    tag = await db.get(ProductTag, tag_id)
    if tag is None:
        raise NotFound("Tag not found.")
    await db.execute(
        delete(ProductTagAssignment).where(ProductTagAssignment.tag_id == tag_id)
    )
    await db.delete(tag)
    await commit_or_raise(db, "tags.delete")


async def assign_tags(
    db: AsyncSession, product_id: uuid.UUID, tag_ids: Sequence[uuid.UUID]
) -> Product:
    """Replace the product's tag set with ``tag_ids``."""
    await get_product(db, product_id)
    wanted = list(dict.fromkeys(tag_ids))

    if wanted:
        found = await db.execute(select(ProductTag.id).where(ProductTag.id.in_(wanted)))
        missing = set(wanted) - set(found.scalars().all())
        if missing:
            raise NotFound("One or more tags were not found.")

    await db.execute(
        delete(ProductTagAssignment).where(ProductTagAssignment.product_id == product_id)
    )
    for tag_id in wanted:
        db.add(ProductTagAssignment(product_id=product_id, tag_id=tag_id))

    await commit_or_raise(db, "tags.assign")
    return await get_product(db, product_id)
