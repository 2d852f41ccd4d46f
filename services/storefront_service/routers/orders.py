"""Checkout and customer order router."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import payment_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    CancellationRequestCreate,
    CheckoutRequest,
    CheckoutResponse,
    OrderDetailResponse,
    OrderResponse,
)
from services.storefront_service.services import order_ops
from services.storefront_service.services.checkout import place_order
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["storefront"])


@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
@payment_limit
async def checkout(
    request: Request,
    checkout_in: CheckoutRequest,
    current_user: Optional[AuthUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Pay for the cart and place the order.

    A failed checkout answers with the error's status code and the final
    workflow state, so the client can show the message and keep the form.
    """
    outcome = await place_order(db, customer=current_user, request=checkout_in)
    if not outcome.succeeded:
        return JSONResponse(
            status_code=outcome.error.status_code,
            content={
                "state": outcome.state.value,
                "message": outcome.message,
                "detail": outcome.message,
                "code": outcome.error.code,
            },
        )
    return CheckoutResponse(
        state=outcome.state.value,
        message=outcome.message,
        order=OrderResponse.model_validate(outcome.order),
    )


@router.get("/orders", response_model=list[OrderResponse])
async def list_my_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """The caller's orders, newest first."""
    return await order_ops.list_orders_for_customer(db, current_user.user_id)


@router.get("/orders/{order_number}", response_model=OrderDetailResponse)
async def get_my_order(
    order_number: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await order_ops.get_order_for_customer(db, current_user.user_id, order_number)


@router.post("/orders/{order_id}/cancellation-request", response_model=OrderDetailResponse)
async def request_cancellation(
    order_id: uuid.UUID,
    request_in: CancellationRequestCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Ask the store to cancel a pending or processing order."""
    return await order_ops.request_cancellation(
        db,
        customer_id=current_user.user_id,
        order_id=order_id,
        reason=request_in.reason,
    )
