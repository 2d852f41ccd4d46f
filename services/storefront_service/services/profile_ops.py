"""Customer profile reads and updates."""

from libs.auth.models import AuthUser
from libs.db.session import commit_or_raise
from services.storefront_service.models import CustomerProfile
from services.storefront_service.schemas import CustomerProfileUpdate
from sqlalchemy.ext.asyncio import AsyncSession


async def get_or_create_profile(db: AsyncSession, customer: AuthUser) -> CustomerProfile:
    """Return the caller's profile, seeding it from token metadata on first use."""
    profile = await db.get(CustomerProfile, customer.user_id)
    if profile:
        return profile

    profile = CustomerProfile(
        id=customer.user_id,
        first_name=customer.user_metadata.get("first_name"),
        last_name=customer.user_metadata.get("last_name"),
        phone=customer.phone or customer.user_metadata.get("phone_number"),
        phone_verified=bool(customer.user_metadata.get("phone_verified", False)),
    )
    db.add(profile)
    await commit_or_raise(db, "profile.create")
    return profile


async def update_profile(
    db: AsyncSession, customer: AuthUser, data: CustomerProfileUpdate
) -> CustomerProfile:
    profile = await get_or_create_profile(db, customer)
    changes = data.model_dump(exclude_unset=True)
    if "phone" in changes and changes["phone"] != profile.phone:
        # A changed number has not been verified yet
        profile.phone_verified = False
    for field, value in changes.items():
        setattr(profile, field, value)
    await commit_or_raise(db, "profile.update")
    return profile
