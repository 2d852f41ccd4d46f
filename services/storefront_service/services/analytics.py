"""Back-office order analytics.

Pure aggregation over already-loaded orders and order items. Revenue follows
the delivered-only rule: delivered orders contribute their total, cancelled
orders contribute only the retained cancellation fee, and every other status
contributes nothing.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from libs.common.currency import TWO_PLACES, ZERO, to_money
from libs.common.datetime_utils import utc_now
from services.storefront_service.models.enums import OrderStatus

DAILY_WINDOW_DAYS = 30
GROWTH_WINDOW_DAYS = 7
TOP_PRODUCTS_LIMIT = 10


@dataclass
class DailyOrderStats:
    date: date
    total_orders: int = 0
    delivered_orders: int = 0
    pending_orders: int = 0
    cancelled_orders: int = 0
    shipped_orders: int = 0
    revenue: Decimal = ZERO


@dataclass
class OrderSummary:
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    status_counts: Dict[str, int]
    growth_rate: float
    current_period_revenue: Decimal
    previous_period_revenue: Decimal


@dataclass
class TopProduct:
    product_id: Optional[Any]
    product_name: str
    total_quantity_sold: int = 0
    total_revenue: Decimal = ZERO
    times_ordered: int = 0


@dataclass
class _ItemView:
    """What top-product ranking needs from an order item."""

    product_id: Optional[Any]
    product_name: str
    quantity: int
    total_price: Decimal
    order_status: Any = field(default=None)


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, OrderStatus) else str(status)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def local_date(moment: datetime, tz: tzinfo) -> date:
    return _as_utc(moment).astimezone(tz).date()


def order_revenue(order: Any) -> Decimal:
    """Revenue an order contributes under the delivered-only rule."""
    status = _status_value(order.status)
    if status == OrderStatus.DELIVERED.value:
        return to_money(order.total_amount or 0)
    if status == OrderStatus.CANCELLED.value:
        return to_money(order.cancellation_fee or 0)
    return ZERO


def total_revenue(orders: Iterable[Any]) -> Decimal:
    return to_money(sum((order_revenue(order) for order in orders), ZERO))


def growth_rate(current: Decimal, previous: Decimal) -> float:
    """Percentage change; 0 when both are zero, 100 when growing from zero."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    change = (Decimal(current) - Decimal(previous)) / Decimal(previous) * 100
    return float(change.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def daily_order_stats(
    orders: Iterable[Any],
    tz: Optional[tzinfo] = None,
    *,
    limit_days: Optional[int] = DAILY_WINDOW_DAYS,
) -> List[DailyOrderStats]:
    """Group orders by local calendar day, oldest day first.

    Only the most recent ``limit_days`` days that have orders are returned.
    """
    tz = tz or timezone.utc
    by_day: Dict[date, DailyOrderStats] = {}

    for order in orders:
        day = local_date(order.created_at, tz)
        stats = by_day.get(day)
        if stats is None:
            stats = by_day[day] = DailyOrderStats(date=day)

        stats.total_orders += 1
        status = _status_value(order.status)
        if status == OrderStatus.DELIVERED.value:
            stats.delivered_orders += 1
        elif status == OrderStatus.PENDING.value:
            stats.pending_orders += 1
        elif status == OrderStatus.CANCELLED.value:
            stats.cancelled_orders += 1
        elif status == OrderStatus.SHIPPED.value:
            stats.shipped_orders += 1
        stats.revenue = to_money(stats.revenue + order_revenue(order))

    result = sorted(by_day.values(), key=lambda s: s.date)
    if limit_days is not None:
        result = result[-limit_days:]
    return result


def summarize_orders(
    orders: Sequence[Any], *, now: Optional[datetime] = None
) -> OrderSummary:
    """Totals across every order plus the trailing week-over-week growth."""
    now = _as_utc(now or utc_now())
    current_start = now - timedelta(days=GROWTH_WINDOW_DAYS)
    previous_start = now - timedelta(days=GROWTH_WINDOW_DAYS * 2)

    revenue = total_revenue(orders)
    count = len(orders)
    average = to_money(revenue / count) if count else ZERO

    current = [o for o in orders if _as_utc(o.created_at) >= current_start]
    previous = [
        o
        for o in orders
        if previous_start <= _as_utc(o.created_at) < current_start
    ]
    current_revenue = total_revenue(current)
    previous_revenue = total_revenue(previous)

    status_counts = Counter(_status_value(o.status) for o in orders)

    return OrderSummary(
        total_revenue=revenue,
        total_orders=count,
        average_order_value=average,
        status_counts=dict(status_counts),
        growth_rate=growth_rate(current_revenue, previous_revenue),
        current_period_revenue=current_revenue,
        previous_period_revenue=previous_revenue,
    )


def top_products(
    items: Iterable[Any], *, limit: int = TOP_PRODUCTS_LIMIT
) -> List[TopProduct]:
    """Rank products by revenue from delivered orders only.

    ``items`` are order items exposing ``order_status`` or an ``order``
    relationship. Ties keep first-seen order.
    """
    ranking: Dict[Any, TopProduct] = {}

    for item in items:
        status = getattr(item, "order_status", None)
        if status is None and getattr(item, "order", None) is not None:
            status = item.order.status
        if status is None or _status_value(status) != OrderStatus.DELIVERED.value:
            continue

        key = item.product_id if item.product_id is not None else item.product_name
        entry = ranking.get(key)
        if entry is None:
            entry = ranking[key] = TopProduct(
                product_id=item.product_id, product_name=item.product_name
            )
        entry.total_quantity_sold += item.quantity
        entry.total_revenue = to_money(entry.total_revenue + to_money(item.total_price))
        entry.times_ordered += 1

    # sorted() is stable
    ranked = sorted(ranking.values(), key=lambda p: p.total_revenue, reverse=True)
    return ranked[:limit]


def item_view(
    product_id: Optional[Any],
    product_name: str,
    quantity: int,
    total_price: Decimal,
    order_status: Any,
) -> _ItemView:
    """Build a ranking row from a joined (item, order status) query result."""
    return _ItemView(
        product_id=product_id,
        product_name=product_name,
        quantity=quantity,
        total_price=total_price,
        order_status=order_status,
    )


def resolve_timezone(name: str) -> tzinfo:
    return ZoneInfo(name)
