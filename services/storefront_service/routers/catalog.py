"""Public catalog router: products, categories, tags."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.db.session import get_async_db
from services.storefront_service.routers._helpers import (
    product_response,
    product_responses,
)
from services.storefront_service.schemas import (
    CategoryResponse,
    ProductListResponse,
    ProductResponse,
    TagResponse,
)
from services.storefront_service.services import catalog_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["storefront"])


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    category: Optional[str] = Query(None, description="Category slug"),
    featured: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: AsyncSession = Depends(get_async_db),
):
    """List active products with their resolved images."""
    products = await catalog_ops.list_active_products(
        db, category_slug=category, featured=featured, search=search
    )
    return ProductListResponse(items=product_responses(products), total=len(products))


@router.get("/products/{product_ref}", response_model=ProductResponse)
async def get_product(
    product_ref: str,
    db: AsyncSession = Depends(get_async_db),
):
    """Get an active product by id or slug."""
    product = await catalog_ops.get_active_product(db, product_ref)
    return product_response(product)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_async_db)):
    return await catalog_ops.list_categories(db)


@router.get("/tags", response_model=list[TagResponse])
async def list_tags(db: AsyncSession = Depends(get_async_db)):
    return await catalog_ops.list_active_tags(db)
