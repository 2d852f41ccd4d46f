"""Pydantic schemas for the storefront service."""

import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from services.storefront_service.models import (
    OrderStatus,
    PaymentStatus,
    ProductStatus,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def validate_email_format(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    background_color: str = Field("#3B82F6", pattern=HEX_COLOR_PATTERN)
    text_color: str = Field("#FFFFFF", pattern=HEX_COLOR_PATTERN)
    sort_order: int = 0
    is_active: bool = True


class TagCreate(TagBase):
    pass


class TagUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    background_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    text_color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class TagResponse(TagBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime


class TagAssignmentRequest(BaseModel):
    tag_ids: list[uuid.UUID] = Field(default_factory=list)


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductImageCreate(BaseModel):
    image_url: str = Field(..., max_length=1000)
    alt_text: Optional[str] = Field(None, max_length=255)
    is_primary: bool = False
    sort_order: int = 0


class ProductImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    image_url: str
    alt_text: Optional[str] = None
    is_primary: bool = False
    sort_order: int = 0


class ResolvedImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    alt_text: str
    is_primary: bool
    source: str


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, decimal_places=2)
    compare_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    stock_quantity: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.ACTIVE
    is_featured: bool = False
    category_id: Optional[uuid.UUID] = None

    @model_validator(mode="after")
    def compare_price_above_price(self):
        if self.compare_price is not None and self.compare_price <= self.price:
            raise ValueError("compare_price must be greater than price")
        return self


class ProductCreate(ProductBase):
    slug: Optional[str] = Field(None, max_length=255)
    images: list[ProductImageCreate] = Field(default_factory=list)
    tag_ids: list[uuid.UUID] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    sku: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    compare_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    stock_quantity: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None
    is_featured: Optional[bool] = None
    category_id: Optional[uuid.UUID] = None


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    slug: str
    sku: str
    description: Optional[str] = None
    price: Decimal
    compare_price: Optional[Decimal] = None
    stock_quantity: int
    status: ProductStatus
    is_featured: bool
    category_id: Optional[uuid.UUID] = None
    images: list[ProductImageResponse] = []
    tags: list[TagResponse] = []
    display_image: Optional[ResolvedImageResponse] = None
    gallery: list[ResolvedImageResponse] = []
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int


# ============================================================================
# CART & WISHLIST SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    # Zero or negative removes the line
    quantity: int


class CartProductSummary(BaseModel):
    id: uuid.UUID
    name: str
    sku: str
    price: Decimal
    stock_quantity: int
    image_url: str


class CartItemResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    line_total: Decimal
    product: CartProductSummary


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    item_count: int
    total: Decimal


class WishlistItemCreate(BaseModel):
    product_id: uuid.UUID


class WishlistItemResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    created_at: datetime
    product: CartProductSummary


# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class Address(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    address_line_1: str = Field(..., min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=3, max_length=12)
    country: str = Field("India", max_length=100)


class PaymentForm(BaseModel):
    """Simulated card form. Any well-formed submission is accepted."""

    payment_method: str = Field("card", max_length=50)
    card_number: Optional[str] = Field(None, max_length=23)
    cardholder_name: Optional[str] = Field(None, max_length=100)
    expiry: Optional[str] = Field(None, max_length=7)

    @property
    def card_last_four(self) -> Optional[str]:
        digits = _digits(self.card_number or "")
        return digits[-4:] if len(digits) >= 4 else None


class CheckoutRequest(BaseModel):
    # Format checks happen in the checkout workflow so they fail before any write
    email: Optional[str] = None
    phone: Optional[str] = None
    shipping_address: Optional[Address] = None
    billing_address: Optional[Address] = None
    payment: PaymentForm = Field(default_factory=PaymentForm)
    notes: Optional[str] = Field(None, max_length=1000)


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderStatusHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    old_status: Optional[str] = None
    new_status: str
    changed_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    customer_id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    subtotal: Decimal
    tax_amount: Decimal
    shipping_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    currency: str
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[str] = None
    card_last_four: Optional[str] = None
    shipping_address: Optional[dict] = None
    billing_address: Optional[dict] = None
    notes: Optional[str] = None
    cancellation_requested: bool = False
    cancellation_request_reason: Optional[str] = None
    cancellation_requested_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancellation_fee: Optional[Decimal] = None
    refund_amount: Optional[Decimal] = None
    cancelled_at: Optional[datetime] = None
    admin_response: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class OrderDetailResponse(OrderResponse):
    status_history: list[OrderStatusHistoryResponse] = []


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class CheckoutResponse(BaseModel):
    state: str
    message: str
    order: Optional[OrderResponse] = None


class CancellationRequestCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class CancellationDecision(BaseModel):
    approve: bool
    admin_response: Optional[str] = Field(None, max_length=1000)


class AdminCancelRequest(BaseModel):
    reason: str = Field(..., max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# ============================================================================
# ANALYTICS SCHEMAS
# ============================================================================


class DailyOrderStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    total_orders: int
    delivered_orders: int
    pending_orders: int
    cancelled_orders: int
    shipped_orders: int
    revenue: Decimal


class OrderSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal
    status_counts: dict[str, int]
    growth_rate: float
    current_period_revenue: Decimal
    previous_period_revenue: Decimal


class TopProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[uuid.UUID] = None
    product_name: str
    total_quantity_sold: int
    total_revenue: Decimal
    times_ordered: int


# ============================================================================
# CONTACT SCHEMAS
# ============================================================================


class ContactSubmissionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: str = Field(..., max_length=50)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field is required")
        return v

    @field_validator("email")
    @classmethod
    def check_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_format(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        v = v.strip()
        if len(_digits(v)) < 10:
            raise ValueError("Please enter a valid phone number")
        return v


class ContactSubmissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone: str
    subject: str
    message: str
    is_read: bool
    created_at: datetime


class ContactReadUpdate(BaseModel):
    is_read: bool


# ============================================================================
# AUTH & PROFILE SCHEMAS
# ============================================================================


class OtpSendRequest(BaseModel):
    phone_number: str = Field(..., max_length=20)
    country_code: str = Field("+91", pattern=r"^\+\d{1,4}$")

    @field_validator("phone_number")
    @classmethod
    def normalise_phone(cls, v: str) -> str:
        digits = _digits(v)
        if not 6 <= len(digits) <= 15:
            raise ValueError("Please enter a valid phone number")
        return digits


class OtpSendResponse(BaseModel):
    success: bool = True
    message: str
    expires_in_seconds: int
    # Only populated outside production
    otp: Optional[str] = None


class OtpVerifyRequest(OtpSendRequest):
    otp: str = Field(..., pattern=r"^\d{6}$")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class OtpVerifyResponse(BaseModel):
    success: bool = True
    message: str
    user_id: str
    phone_verified: bool = True
    action_link: Optional[str] = None


class CustomerProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    phone_verified: bool = False


class CustomerProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)


class AdminLoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class AdminTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    email: str
    full_name: Optional[str] = None
