"""Back-office authentication against bcrypt password hashes."""

from typing import Optional

from libs.auth.dependencies import create_admin_token
from libs.auth.passwords import hash_password, verify_password
from libs.common.datetime_utils import utc_now
from libs.common.errors import DuplicateEntry, Unauthenticated
from libs.common.logging import get_logger
from libs.db.session import commit_or_raise
from services.storefront_service.models import AdminUser
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."


def _normalise_email(email: str) -> str:
    return email.strip().lower()


async def create_admin_user(
    db: AsyncSession, *, email: str, password: str, full_name: Optional[str] = None
) -> AdminUser:
    email = _normalise_email(email)
    existing = await db.execute(select(AdminUser.id).where(AdminUser.email == email))
    if existing.scalar_one_or_none() is not None:
        raise DuplicateEntry("An admin with this email already exists.")

    admin = AdminUser(
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(admin)
    await commit_or_raise(db, "admin.create")
    logger.info("Created admin user %s", email)
    return admin


async def authenticate_admin(db: AsyncSession, *, email: str, password: str) -> AdminUser:
    """Return the active admin for these credentials or raise Unauthenticated."""
    result = await db.execute(
        select(AdminUser).where(func.lower(AdminUser.email) == _normalise_email(email))
    )
    admin = result.scalar_one_or_none()

    if admin is None or not admin.is_active or not verify_password(password, admin.password_hash):
        logger.warning("Failed admin login for %s", _normalise_email(email))
        raise Unauthenticated(INVALID_CREDENTIALS)

    admin.last_login_at = utc_now()
    await commit_or_raise(db, "admin.login")
    return admin


async def login(db: AsyncSession, *, email: str, password: str) -> tuple[AdminUser, str]:
    admin = await authenticate_admin(db, email=email, password=password)
    token = create_admin_token(str(admin.id), admin.email)
    logger.info("Admin %s signed in", admin.email)
    return admin, token
