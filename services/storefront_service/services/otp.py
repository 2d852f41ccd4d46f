"""Phone number verification by one-time code.

One row per phone number holds the active code (as a SHA-256 digest) and its
expiry. Sending a new code overwrites the previous one, so only the latest
code verifies. Codes live for ``OTP_TTL_MINUTES``.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from libs.auth.identity import IdentityUser, SupabaseIdentityProvider
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.errors import ValidationError
from libs.common.logging import get_logger
from libs.db.session import commit_or_raise
from services.storefront_service.models import CustomerProfile, PhoneAuth
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

OTP_LOW = 100000
OTP_HIGH = 999999


def generate_otp() -> str:
    """A uniformly random six-digit code."""
    return str(OTP_LOW + secrets.randbelow(OTP_HIGH - OTP_LOW + 1))


def hash_otp(country_code: str, phone_number: str, code: str) -> str:
    return hashlib.sha256(f"{country_code}{phone_number}:{code}".encode()).hexdigest()


def _mask(phone_number: str) -> str:
    return f"***{phone_number[-4:]}"


@dataclass
class IssuedOtp:
    code: str
    expires_at: datetime
    ttl_seconds: int


@dataclass
class VerifiedPhone:
    user_id: str
    action_link: Optional[str]
    created_user: bool


async def purge_expired(db: AsyncSession, now: datetime) -> None:
    """Drop unverified rows whose code has expired."""
    await db.execute(
        delete(PhoneAuth).where(
            PhoneAuth.is_verified.is_(False),
            PhoneAuth.user_id.is_(None),
            PhoneAuth.otp_expires_at < now,
        )
    )


async def send_otp(
    db: AsyncSession,
    *,
    phone_number: str,
    country_code: str,
    now: Optional[datetime] = None,
    code_factory: Callable[[], str] = generate_otp,
) -> IssuedOtp:
    settings = get_settings()
    now = now or utc_now()
    ttl = timedelta(minutes=settings.OTP_TTL_MINUTES)

    await purge_expired(db, now)

    result = await db.execute(
        select(PhoneAuth).where(PhoneAuth.phone_number == phone_number)
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = PhoneAuth(phone_number=phone_number, country_code=country_code)
        db.add(row)

    code = code_factory()
    row.country_code = country_code
    row.otp_hash = hash_otp(country_code, phone_number, code)
    row.otp_expires_at = now + ttl
    row.is_verified = False
    await commit_or_raise(db, "otp.send")

    if settings.ENVIRONMENT == "production":
        logger.info("OTP issued for %s", _mask(phone_number))
    else:
        logger.info("OTP for %s%s: %s", country_code, phone_number, code)

    return IssuedOtp(code=code, expires_at=now + ttl, ttl_seconds=int(ttl.total_seconds()))


async def _ensure_profile(
    db: AsyncSession,
    user_id: str,
    phone_number: str,
    first_name: Optional[str],
    last_name: Optional[str],
) -> None:
    profile = await db.get(CustomerProfile, user_id)
    if profile is None:
        profile = CustomerProfile(id=user_id)
        db.add(profile)
    profile.phone = phone_number
    profile.phone_verified = True
    if first_name:
        profile.first_name = first_name
    if last_name:
        profile.last_name = last_name


async def verify_otp(
    db: AsyncSession,
    identity: SupabaseIdentityProvider,
    *,
    phone_number: str,
    country_code: str,
    code: str,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VerifiedPhone:
    """Check a code and sign the phone's owner in, creating them if needed."""
    now = now or utc_now()
    result = await db.execute(
        select(PhoneAuth).where(
            PhoneAuth.phone_number == phone_number,
            PhoneAuth.country_code == country_code,
            PhoneAuth.otp_hash == hash_otp(country_code, phone_number, code),
            PhoneAuth.otp_expires_at > now,
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        logger.info("OTP verification failed for %s", _mask(phone_number))
        raise ValidationError("Invalid or expired OTP.")

    created = False
    user: Optional[IdentityUser]
    if row.user_id:
        user = await identity.get_user(row.user_id)
    else:
        user = await identity.create_phone_user(
            row.full_phone,
            {
                "phone_number": phone_number,
                "country_code": country_code,
                "phone_verified": True,
                "first_name": first_name or "",
                "last_name": last_name or "",
            },
        )
        row.user_id = user.id
        created = True

    user_id = row.user_id
    metadata = user.user_metadata if user else {}
    await _ensure_profile(
        db,
        user_id,
        phone_number,
        first_name or metadata.get("first_name"),
        last_name or metadata.get("last_name"),
    )

    row.is_verified = True
    row.otp_hash = None
    row.otp_expires_at = None
    await commit_or_raise(db, "otp.verify")
    logger.info("Phone verified for user %s (new=%s)", user_id, created)

    email = (user.email if user else None) or f"{user_id}@phone.temp"
    action_link = await identity.generate_magic_link(email)
    return VerifiedPhone(user_id=user_id, action_link=action_link, created_user=created)
