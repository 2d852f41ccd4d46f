"""Checkout: turn a customer's cart into an order.

States run ``idle -> validating -> persisting -> completed``, or end in
``failed`` from either working state. Validation performs reads only, so a
rejected checkout leaves no trace. Persisting is a single transaction: stock
reservation, the order, its item snapshots, the payment session record, the
first history row and the cart clear commit together or not at all.

Payment is simulated. Any submitted form is accepted after a fixed delay.
"""

import asyncio
import enum
import re
import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.currency import CURRENCY
from libs.common.datetime_utils import utc_now
from libs.common.errors import (
    EmptyCart,
    InsufficientStock,
    StoreError,
    Unauthenticated,
    UnknownError,
    ValidationError,
    log_error,
    translate_db_error,
)
from libs.common.logging import get_logger
from services.storefront_service.models import (
    CartItem,
    CheckoutSession,
    CheckoutSessionStatus,
    Order,
    OrderItem,
    OrderStatus,
    OrderStatusHistory,
    PaymentStatus,
    Product,
    ProductStatus,
    generate_order_number,
)
from services.storefront_service.schemas import EMAIL_PATTERN, CheckoutRequest, PaymentForm
from services.storefront_service.services import cart_ops
from services.storefront_service.services.pricing import (
    OrderTotals,
    PricedLine,
    compute_totals,
)
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

ORDER_NUMBER_ATTEMPTS = 5


class CheckoutState(str, enum.Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class CheckoutOutcome:
    state: CheckoutState
    message: str
    order: Optional[Order] = None
    error: Optional[StoreError] = None

    @property
    def succeeded(self) -> bool:
        return self.state == CheckoutState.COMPLETED


@dataclass(frozen=True)
class PaymentReceipt:
    session_id: str
    payment_method: str
    card_last_four: Optional[str]
    amount: Decimal


class SimulatedPaymentProcessor:
    """Stand-in for a payment gateway: waits, then approves."""

    def __init__(
        self,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if delay_seconds is None:
            delay_seconds = get_settings().PAYMENT_SIMULATION_DELAY_SECONDS
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def charge(self, amount: Decimal, form: PaymentForm) -> PaymentReceipt:
        if self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)
        session_id = f"dummy_session_{int(utc_now().timestamp() * 1000)}_{secrets.token_hex(4)}"
        logger.info("Simulated payment approved: %s amount=%s", session_id, amount)
        return PaymentReceipt(
            session_id=session_id,
            payment_method=form.payment_method,
            card_last_four=form.card_last_four,
            amount=amount,
        )


LineLoader = Callable[[AsyncSession, str], Awaitable[List[CartItem]]]


@dataclass
class CheckoutWorkflow:
    db: AsyncSession
    payment_processor: SimulatedPaymentProcessor = field(
        default_factory=SimulatedPaymentProcessor
    )
    load_lines: LineLoader = cart_ops.list_lines
    state: CheckoutState = CheckoutState.IDLE
    transitions: List[CheckoutState] = field(default_factory=list)

    def _enter(self, state: CheckoutState) -> None:
        self.state = state
        self.transitions.append(state)

    def _fail(self, error: StoreError) -> CheckoutOutcome:
        self._enter(CheckoutState.FAILED)
        return CheckoutOutcome(
            state=self.state, message=error.message, error=error
        )

    async def run(
        self, customer: Optional[AuthUser], request: CheckoutRequest
    ) -> CheckoutOutcome:
        self._enter(CheckoutState.VALIDATING)
        try:
            customer, lines, contact = await self._validate(customer, request)
        except StoreError as exc:
            logger.info("Checkout rejected: %s", exc.code)
            return self._fail(exc)

        snapshot = cart_ops.snapshot_lines(lines)
        totals = compute_totals(snapshot)
        receipt = await self.payment_processor.charge(totals.total, request.payment)

        self._enter(CheckoutState.PERSISTING)
        try:
            order = await self._persist(customer, snapshot, totals, request, contact, receipt)
        except (SQLAlchemyError, StoreError) as exc:
            await self.db.rollback()
            error = translate_db_error(exc, "checkout.persist")
            return self._fail(error)
        except Exception as exc:
            await self.db.rollback()
            log_error("checkout.persist", exc)
            return self._fail(UnknownError(operation="checkout.persist"))

        self._enter(CheckoutState.COMPLETED)
        logger.info(
            "Order %s placed by %s: total=%s items=%d",
            order.order_number,
            customer.user_id,
            order.total_amount,
            len(snapshot),
        )
        return CheckoutOutcome(
            state=self.state,
            message="Payment successful. Your order has been placed.",
            order=order,
        )

    # ------------------------------------------------------------------
    # Validating
    # ------------------------------------------------------------------

    async def _validate(self, customer: Optional[AuthUser], request: CheckoutRequest):
        if customer is None:
            raise Unauthenticated("Please login to complete your purchase.")

        lines = await self.load_lines(self.db, customer.user_id)
        if not lines:
            raise EmptyCart()

        email = (request.email or customer.email or "").strip() or None
        if email and not EMAIL_PATTERN.match(email):
            raise ValidationError("Please enter a valid email address.")

        phone = (request.phone or customer.phone or "").strip() or None
        if phone and len(re.sub(r"\D", "", phone)) < 10:
            raise ValidationError("Please enter a valid phone number.")

        if request.shipping_address is None:
            raise ValidationError("A shipping address is required.")

        return customer, lines, {"email": email, "phone": phone}

    # ------------------------------------------------------------------
    # Persisting
    # ------------------------------------------------------------------

    async def _reserve_stock(self, snapshot: Sequence[PricedLine]) -> None:
        """Decrement stock for every line, failing if any would go negative."""
        product_ids = [line.product_id for line in snapshot]
        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(product_ids))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        products: Dict[object, Product] = {p.id: p for p in result.scalars()}

        for line in snapshot:
            product = products.get(line.product_id)
            if (
                product is None
                or product.status != ProductStatus.ACTIVE
                or product.stock_quantity < line.quantity
            ):
                raise InsufficientStock(
                    f"Sorry, {line.product_name} does not have enough stock."
                )
            product.stock_quantity -= line.quantity

    async def _unique_order_number(self) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number()
            taken = await self.db.execute(
                select(Order.id).where(Order.order_number == candidate)
            )
            if taken.scalar_one_or_none() is None:
                return candidate
        raise UnknownError("Could not allocate an order number.")

    async def _persist(
        self,
        customer: AuthUser,
        snapshot: Sequence[PricedLine],
        totals: OrderTotals,
        request: CheckoutRequest,
        contact: dict,
        receipt: PaymentReceipt,
    ) -> Order:
        await self._reserve_stock(snapshot)

        shipping = request.shipping_address.model_dump()
        billing = request.billing_address.model_dump() if request.billing_address else shipping

        order = Order(
            order_number=await self._unique_order_number(),
            customer_id=customer.user_id,
            email=contact["email"],
            phone=contact["phone"],
            subtotal=totals.subtotal,
            tax_amount=totals.tax,
            shipping_amount=totals.shipping,
            discount_amount=totals.discount,
            total_amount=totals.total,
            currency=CURRENCY,
            status=OrderStatus.PROCESSING,
            payment_status=PaymentStatus.COMPLETED,
            payment_method=receipt.payment_method,
            card_last_four=receipt.card_last_four,
            shipping_address=shipping,
            billing_address=billing,
            notes=request.notes,
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.product_name,
                product_sku=line.product_sku,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.line_total,
            )
            for line in snapshot
        ]
        order.status_history = [
            OrderStatusHistory(
                old_status=None,
                new_status=OrderStatus.PROCESSING.value,
                changed_by=customer.user_id,
                notes="Order placed",
            )
        ]
        self.db.add(order)
        await self.db.flush()

        self.db.add(
            CheckoutSession(
                customer_id=customer.user_id,
                order_id=order.id,
                session_id=receipt.session_id,
                payment_method=receipt.payment_method,
                card_last_four=receipt.card_last_four,
                amount=receipt.amount,
                currency=CURRENCY,
                status=CheckoutSessionStatus.COMPLETED,
                completed_at=utc_now(),
            )
        )
        await cart_ops.clear_cart(self.db, customer_id=customer.user_id, commit=False)
        await self.db.commit()
        return order


async def place_order(
    db: AsyncSession,
    *,
    customer: Optional[AuthUser],
    request: CheckoutRequest,
    payment_processor: Optional[SimulatedPaymentProcessor] = None,
) -> CheckoutOutcome:
    workflow = CheckoutWorkflow(
        db=db,
        payment_processor=payment_processor or SimulatedPaymentProcessor(),
    )
    return await workflow.run(customer, request)
