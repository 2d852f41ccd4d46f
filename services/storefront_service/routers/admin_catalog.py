"""Admin catalog router: products, images, tags."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import StoreError, ValidationError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.storefront_service.models import ProductStatus
from services.storefront_service.routers._helpers import (
    product_response,
    product_responses,
)
from services.storefront_service.schemas import (
    ProductCreate,
    ProductImageCreate,
    ProductImageResponse,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    TagAssignmentRequest,
    TagCreate,
    TagResponse,
    TagUpdate,
)
from services.storefront_service.services import catalog_ops
from services.storefront_service.storage import (
    StorageService,
    get_storage_service,
    validate_image_upload,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-storefront"])
logger = get_logger(__name__)


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=ProductListResponse)
async def list_all_products(
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List products in every status."""
    products = await catalog_ops.list_all_products(db, status=status_filter, search=search)
    return ProductListResponse(items=product_responses(products), total=len(products))


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return product_response(await catalog_ops.get_product(db, product_id))


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_ops.create_product(db, product_in)
    return product_response(product)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await catalog_ops.update_product(db, product_id, product_in)
    return product_response(product)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Delete a product and, best effort, its uploaded image files."""
    storage_paths = await catalog_ops.delete_product(db, product_id)
    for path in storage_paths:
        await storage.delete_object(path)


# ============================================================================
# IMAGES
# ============================================================================


@router.post(
    "/products/{product_id}/images",
    response_model=ProductImageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_product_image(
    product_id: uuid.UUID,
    image_in: ProductImageCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Attach an image that is already hosted elsewhere."""
    return await catalog_ops.add_image(
        db, product_id, image_in, max_images=get_settings().MAX_IMAGES_PER_PRODUCT
    )


@router.post(
    "/products/{product_id}/images/upload",
    response_model=ProductImageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_product_image(
    product_id: uuid.UUID,
    file: UploadFile = File(...),
    alt_text: Optional[str] = Form(None),
    is_primary: bool = Form(False),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload an image file to storage and attach it to the product."""
    settings = get_settings()
    data = await file.read()
    filename = file.filename or "image.jpg"
    validate_image_upload(
        file.content_type, len(data), filename, max_bytes=settings.MAX_IMAGE_UPLOAD_BYTES
    )

    await catalog_ops.get_product(db, product_id)
    if await catalog_ops.count_images(db, product_id) >= settings.MAX_IMAGES_PER_PRODUCT:
        raise ValidationError(
            f"A product can have at most {settings.MAX_IMAGES_PER_PRODUCT} images."
        )

    url, path = await storage.upload_product_image(
        product_id, filename, data, file.content_type
    )
    try:
        return await catalog_ops.add_image(
            db,
            product_id,
            ProductImageCreate(image_url=url, alt_text=alt_text, is_primary=is_primary),
            max_images=settings.MAX_IMAGES_PER_PRODUCT,
            storage_path=path,
        )
    except StoreError:
        # Row was not written; do not leave an orphaned object behind
        logger.warning("Image row for %s not saved; removing %s", product_id, path)
        await storage.delete_object(path)
        raise


@router.delete(
    "/products/{product_id}/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_product_image(
    product_id: uuid.UUID,
    image_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Remove the stored file, then the image row."""
    image = await catalog_ops.get_image(db, product_id, image_id)
    if image.storage_path:
        await storage.delete_object(image.storage_path)
    await catalog_ops.delete_image(db, image)


# ============================================================================
# TAGS
# ============================================================================


@router.get("/tags", response_model=list[TagResponse])
async def list_all_tags(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all tags (including inactive)."""
    return await catalog_ops.list_all_tags(db)


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    tag_in: TagCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_ops.create_tag(db, tag_in)


@router.patch("/tags/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: uuid.UUID,
    tag_in: TagUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await catalog_ops.update_tag(db, tag_id, tag_in)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await catalog_ops.delete_tag(db, tag_id)


@router.put("/products/{product_id}/tags", response_model=ProductResponse)
async def assign_product_tags(
    product_id: uuid.UUID,
    assignment_in: TagAssignmentRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Replace the product's tags with the given set."""
    product = await catalog_ops.assign_tags(db, product_id, assignment_in.tag_ids)
    return product_response(product)
