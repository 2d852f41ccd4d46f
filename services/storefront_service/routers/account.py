"""Customer account router: phone OTP sign-in, profile, contact form."""

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.identity import SupabaseIdentityProvider, get_identity_provider
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.rate_limit import auth_limit, form_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    ContactSubmissionCreate,
    ContactSubmissionResponse,
    CustomerProfileResponse,
    CustomerProfileUpdate,
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    OtpVerifyResponse,
)
from services.storefront_service.services import contact_ops, otp, profile_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["storefront"])


# ============================================================================
# PHONE OTP
# ============================================================================


@router.post("/auth/otp/send", response_model=OtpSendResponse)
@auth_limit
async def send_otp(
    request: Request,
    otp_in: OtpSendRequest,
    db: AsyncSession = Depends(get_async_db),
):
    issued = await otp.send_otp(
        db, phone_number=otp_in.phone_number, country_code=otp_in.country_code
    )
    expose = get_settings().ENVIRONMENT != "production"
    return OtpSendResponse(
        message="OTP sent successfully.",
        expires_in_seconds=issued.ttl_seconds,
        otp=issued.code if expose else None,
    )


@router.post("/auth/otp/verify", response_model=OtpVerifyResponse)
@auth_limit
async def verify_otp(
    request: Request,
    otp_in: OtpVerifyRequest,
    db: AsyncSession = Depends(get_async_db),
    identity: SupabaseIdentityProvider = Depends(get_identity_provider),
):
    """Verify a code; creates the customer account on first sign-in."""
    verified = await otp.verify_otp(
        db,
        identity,
        phone_number=otp_in.phone_number,
        country_code=otp_in.country_code,
        code=otp_in.otp,
        first_name=otp_in.first_name,
        last_name=otp_in.last_name,
    )
    return OtpVerifyResponse(
        message="Phone number verified.",
        user_id=verified.user_id,
        action_link=verified.action_link,
    )


# ============================================================================
# PROFILE
# ============================================================================


@router.get("/profile", response_model=CustomerProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await profile_ops.get_or_create_profile(db, current_user)


@router.patch("/profile", response_model=CustomerProfileResponse)
async def update_profile(
    profile_in: CustomerProfileUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await profile_ops.update_profile(db, current_user, profile_in)


# ============================================================================
# CONTACT
# ============================================================================


@router.post(
    "/contact",
    response_model=ContactSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
@form_limit
async def submit_contact_form(
    request: Request,
    contact_in: ContactSubmissionCreate,
    db: AsyncSession = Depends(get_async_db),
):
    return await contact_ops.submit_contact_form(db, contact_in)
