"""Order reads and status transitions.

Transitions commit the order change first. The status history row and the
refund record are written afterwards as best-effort side effects: a failure
there is logged and the transition still stands.
"""

import math
import uuid
from typing import List, Optional, Tuple

from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    NotFound,
    OrderAlreadyCancelled,
    OrderNotCancellable,
    ValidationError,
    translate_db_error,
)
from libs.common.logging import get_logger
from libs.common.retry import retry_async
from libs.db.session import commit_or_raise
from services.storefront_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    PaymentStatus,
    Product,
    Refund,
    RefundStatus,
)
from services.storefront_service.services.pricing import split_cancellation
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

# Orders a customer may still ask to cancel
CANCELLABLE_BY_CUSTOMER = {OrderStatus.PENDING, OrderStatus.PROCESSING}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def _load_order(db: AsyncSession, *criteria, with_history: bool = False) -> Optional[Order]:
    options = [selectinload(Order.items)]
    if with_history:
        options.append(selectinload(Order.status_history))
    result = await db.execute(
        select(Order)
        .where(*criteria)
        .options(*options)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_orders_for_customer(db: AsyncSession, customer_id: str) -> List[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.customer_id == customer_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


async def get_order_for_customer(
    db: AsyncSession, customer_id: str, order_number: str
) -> Order:
    order = await _load_order(
        db,
        Order.order_number == order_number,
        Order.customer_id == customer_id,
        with_history=True,
    )
    if order is None:
        raise NotFound("Order not found.")
    return order


async def get_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    order = await _load_order(db, Order.id == order_id, with_history=True)
    if order is None:
        raise NotFound("Order not found.")
    return order


async def list_orders_admin(
    db: AsyncSession,
    *,
    search: Optional[str] = None,
    status: Optional[OrderStatus] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[Order], int]:
    """One page of orders, newest first, plus the total match count."""
    query = select(Order)
    if status:
        query = query.where(Order.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Order.order_number.ilike(pattern),
                Order.email.ilike(pattern),
                Order.phone.ilike(pattern),
            )
        )

    total = (
        await db.execute(select(func.count()).select_from(query.subquery()))
    ).scalar_one()

    result = await db.execute(
        query.options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total


async def list_orders_admin_with_retry(db: AsyncSession, **filters) -> Tuple[List[Order], int]:
    """``list_orders_admin`` with bounded exponential backoff."""

    async def attempt():
        try:
            return await list_orders_admin(db, **filters)
        except SQLAlchemyError as exc:
            await db.rollback()
            # Translated so authorization failures are not retried
            raise translate_db_error(exc, "orders.admin_list") from exc

    return await retry_async(attempt, operation="orders.admin_list")


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total else 0


# ---------------------------------------------------------------------------
# Best-effort side effects
# ---------------------------------------------------------------------------


async def record_status_change(
    db: AsyncSession,
    order_id: uuid.UUID,
    *,
    old_status: Optional[OrderStatus],
    new_status: OrderStatus,
    changed_by: Optional[str],
    notes: Optional[str] = None,
) -> bool:
    """Append a history row. Failures are logged, never raised."""
    try:
        db.add(
            OrderStatusHistory(
                order_id=order_id,
                old_status=old_status.value if old_status else None,
                new_status=new_status.value,
                changed_by=changed_by,
                notes=notes,
            )
        )
        await db.commit()
        return True
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning(
            "Could not record status history for order %s: %s",
            order_id,
            type(exc).__name__,
        )
        return False


async def record_refund(
    db: AsyncSession,
    order: Order,
    *,
    reason: Optional[str],
    processed_by: Optional[str],
) -> bool:
    """Write the denormalized refund record. Failures are logged, never raised."""
    try:
        db.add(
            Refund(
                order_id=order.id,
                refund_amount=order.refund_amount,
                cancellation_fee=order.cancellation_fee,
                reason=reason,
                status=RefundStatus.PROCESSED,
                processed_by=processed_by,
                processed_at=utc_now(),
            )
        )
        await db.commit()
        return True
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning(
            "Could not record refund for order %s: %s", order.id, type(exc).__name__
        )
        return False


async def _restock(db: AsyncSession, order: Order) -> None:
    """Return the order's quantities to stock (items of deleted products are skipped)."""
    quantities = {}
    for item in order.items:
        if item.product_id is not None:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    if not quantities:
        return
    result = await db.execute(
        select(Product).where(Product.id.in_(list(quantities))).with_for_update()
    )
    for product in result.scalars():
        product.stock_quantity += quantities[product.id]


# ---------------------------------------------------------------------------
# Customer transitions
# ---------------------------------------------------------------------------


async def request_cancellation(
    db: AsyncSession,
    *,
    customer_id: str,
    order_id: uuid.UUID,
    reason: str,
) -> Order:
    """Ask the store to cancel an order that has not shipped yet."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Please provide a reason for cancellation.")

    order = await _load_order(db, Order.id == order_id, Order.customer_id == customer_id)
    if order is None:
        raise NotFound("Order not found.")
    if order.status == OrderStatus.CANCELLED:
        raise OrderAlreadyCancelled()
    if order.cancellation_requested or order.status not in CANCELLABLE_BY_CUSTOMER:
        raise OrderNotCancellable()

    old_status = order.status
    order.cancellation_requested = True
    order.cancellation_request_reason = reason
    order.cancellation_requested_at = utc_now()
    order.status = OrderStatus.CANCELLATION_REQUESTED
    await commit_or_raise(db, "orders.request_cancellation")

    logger.info("Cancellation requested for order %s", order.order_number)
    await record_status_change(
        db,
        order.id,
        old_status=old_status,
        new_status=OrderStatus.CANCELLATION_REQUESTED,
        changed_by=customer_id,
        notes=f"Customer requested cancellation: {reason}",
    )
    return await get_order(db, order_id)


# ---------------------------------------------------------------------------
# Admin transitions
# ---------------------------------------------------------------------------


async def _apply_cancellation(
    db: AsyncSession,
    order: Order,
    *,
    reason: str,
    changed_by: Optional[str],
    admin_response: Optional[str],
    history_note: str,
    operation: str,
) -> Order:
    order_id = order.id
    old_status = order.status
    fee, refund = split_cancellation(order.total_amount)

    order.status = OrderStatus.CANCELLED
    order.payment_status = PaymentStatus.REFUNDED
    order.cancellation_reason = reason
    order.cancellation_fee = fee
    order.refund_amount = refund
    order.cancelled_at = utc_now()
    if admin_response is not None:
        order.admin_response = admin_response
    await _restock(db, order)
    await commit_or_raise(db, operation)

    logger.info(
        "Order %s cancelled: fee=%s refund=%s", order.order_number, fee, refund
    )
    await record_refund(db, order, reason=reason, processed_by=changed_by)
    await record_status_change(
        db,
        order_id,
        old_status=old_status,
        new_status=OrderStatus.CANCELLED,
        changed_by=changed_by,
        notes=history_note,
    )
    return await get_order(db, order_id)


async def resolve_cancellation_request(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    approve: bool,
    admin_response: Optional[str],
    changed_by: Optional[str],
) -> Order:
    order = await _load_order(db, Order.id == order_id)
    if order is None:
        raise NotFound("Order not found.")
    if not order.cancellation_requested or order.status != OrderStatus.CANCELLATION_REQUESTED:
        raise ValidationError("This order has no pending cancellation request.")

    if approve:
        return await _apply_cancellation(
            db,
            order,
            reason=order.cancellation_request_reason or "Customer request",
            changed_by=changed_by,
            admin_response=admin_response,
            history_note="Cancellation request accepted",
            operation="orders.accept_cancellation",
        )

    order.status = OrderStatus.PROCESSING
    order.admin_response = admin_response
    await commit_or_raise(db, "orders.reject_cancellation")
    logger.info("Cancellation request rejected for order %s", order.order_number)
    await record_status_change(
        db,
        order.id,
        old_status=OrderStatus.CANCELLATION_REQUESTED,
        new_status=OrderStatus.PROCESSING,
        changed_by=changed_by,
        notes=f"Cancellation request rejected: {admin_response or 'No reason given'}",
    )
    return await get_order(db, order_id)


async def cancel_order(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    reason: str,
    changed_by: Optional[str],
) -> Order:
    """Cancel an order directly from the back office."""
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Please provide a reason for cancellation.")

    order = await _load_order(db, Order.id == order_id)
    if order is None:
        raise NotFound("Order not found.")
    if order.status == OrderStatus.CANCELLED:
        raise OrderAlreadyCancelled()
    if order.status == OrderStatus.DELIVERED:
        raise OrderNotCancellable("Delivered orders cannot be cancelled.")

    return await _apply_cancellation(
        db,
        order,
        reason=reason,
        changed_by=changed_by,
        admin_response=None,
        history_note=f"Order cancelled by admin: {reason}",
        operation="orders.cancel",
    )


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    new_status: OrderStatus,
    changed_by: Optional[str],
) -> Order:
    if new_status == OrderStatus.CANCELLED:
        raise ValidationError("Use the cancel action to cancel an order.")
    if new_status == OrderStatus.CANCELLATION_REQUESTED:
        raise ValidationError("Only the customer can request a cancellation.")

    order = await _load_order(db, Order.id == order_id)
    if order is None:
        raise NotFound("Order not found.")
    # Cancelled orders already carry a refund and restored stock
    if order.status in (OrderStatus.CANCELLED, OrderStatus.DELIVERED):
        raise ValidationError(
            f"The status of a {order.status.value} order can no longer be changed."
        )
    # The request flag outlives a rejection; only the status marks it pending
    if order.status == OrderStatus.CANCELLATION_REQUESTED:
        raise ValidationError("Resolve the pending cancellation request first.")

    old_status = order.status
    order.status = new_status
    await commit_or_raise(db, "orders.update_status")

    logger.info(
        "Order %s status %s -> %s", order.order_number, old_status.value, new_status.value
    )
    await record_status_change(
        db,
        order.id,
        old_status=old_status,
        new_status=new_status,
        changed_by=changed_by,
        notes=f"Status updated to {new_status.value}",
    )
    return await get_order(db, order_id)


async def list_status_history(db: AsyncSession, order_id: uuid.UUID) -> List[OrderStatusHistory]:
    result = await db.execute(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.created_at)
    )
    return list(result.scalars().all())


async def analytics_items(db: AsyncSession):
    """Order items joined with their order status, for product ranking."""
    result = await db.execute(
        select(
            OrderItem.product_id,
            OrderItem.product_name,
            OrderItem.quantity,
            OrderItem.total_price,
            Order.status,
        )
        .join(Order, OrderItem.order_id == Order.id)
        .order_by(Order.created_at, OrderItem.created_at)
    )
    return result.all()


async def list_orders_for_analytics(db: AsyncSession) -> List[Order]:
    """Every order without its items; the dashboards only read header fields."""
    result = await db.execute(select(Order).order_by(Order.created_at))
    return list(result.scalars().all())


async def list_recent_orders(db: AsyncSession, limit: int = 10) -> List[Order]:
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
