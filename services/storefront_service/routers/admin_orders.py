"""Admin order router: order management and sales dashboards."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.session import get_async_db
from services.storefront_service.models import OrderStatus
from services.storefront_service.routers._helpers import actor
from services.storefront_service.schemas import (
    AdminCancelRequest,
    CancellationDecision,
    DailyOrderStatsResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusHistoryResponse,
    OrderStatusUpdate,
    OrderSummaryResponse,
    TopProductResponse,
)
from services.storefront_service.services import analytics, order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-storefront"])


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    search: Optional[str] = Query(None, max_length=100),
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List orders, newest first. Transient read failures are retried."""
    orders, total = await order_ops.list_orders_admin_with_retry(
        db, search=search, status=status_filter, page=page, page_size=page_size
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=order_ops.total_pages(total, page_size),
    )


@router.get("/orders/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order(db, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderDetailResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_in: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.update_order_status(
        db, order_id=order_id, new_status=status_in.status, changed_by=actor(current_user)
    )


@router.post("/orders/{order_id}/cancel", response_model=OrderDetailResponse)
async def cancel_order(
    order_id: uuid.UUID,
    cancel_in: AdminCancelRequest,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Cancel an order, keep the cancellation fee and refund the rest."""
    return await order_ops.cancel_order(
        db, order_id=order_id, reason=cancel_in.reason, changed_by=actor(current_user)
    )


@router.post("/orders/{order_id}/cancellation-request", response_model=OrderDetailResponse)
async def resolve_cancellation_request(
    order_id: uuid.UUID,
    decision_in: CancellationDecision,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Accept or reject a customer's cancellation request."""
    return await order_ops.resolve_cancellation_request(
        db,
        order_id=order_id,
        approve=decision_in.approve,
        admin_response=decision_in.admin_response,
        changed_by=actor(current_user),
    )


@router.get("/orders/{order_id}/history", response_model=list[OrderStatusHistoryResponse])
async def get_order_history(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await order_ops.get_order(db, order_id)
    return await order_ops.list_status_history(db, order_id)


# ============================================================================
# ANALYTICS
# ============================================================================


@router.get("/analytics/daily", response_model=list[DailyOrderStatsResponse])
async def daily_stats(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Per-day order counts and revenue in the store's timezone."""
    orders = await order_ops.list_orders_for_analytics(db)
    tz = analytics.resolve_timezone(get_settings().TIMEZONE)
    return analytics.daily_order_stats(orders, tz)


@router.get("/analytics/summary", response_model=OrderSummaryResponse)
async def order_summary(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    orders = await order_ops.list_orders_for_analytics(db)
    return analytics.summarize_orders(orders)


@router.get("/analytics/top-products", response_model=list[TopProductResponse])
async def top_products(
    limit: int = Query(analytics.TOP_PRODUCTS_LIMIT, ge=1, le=50),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Best sellers by revenue from delivered orders."""
    rows = await order_ops.analytics_items(db)
    items = [analytics.item_view(*row) for row in rows]
    return analytics.top_products(items, limit=limit)


@router.get("/analytics/recent-orders", response_model=list[OrderResponse])
async def recent_orders(
    limit: int = Query(10, ge=1, le=50),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.list_recent_orders(db, limit=limit)
