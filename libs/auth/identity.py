"""Thin async wrapper over the Supabase Auth admin API.

The supabase client is synchronous, so every call runs in a worker thread.
"""

import asyncio
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.errors import NetworkError
from libs.common.logging import get_logger
from supabase import Client, create_client

logger = get_logger(__name__)


@dataclass
class IdentityUser:
    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    user_metadata: dict[str, Any] = field(default_factory=dict)


def _to_identity_user(user: Any) -> IdentityUser:
    if isinstance(user, dict):
        return IdentityUser(
            id=str(user["id"]),
            email=user.get("email"),
            phone=user.get("phone"),
            user_metadata=dict(user.get("user_metadata") or {}),
        )
    return IdentityUser(
        id=str(user.id),
        email=getattr(user, "email", None),
        phone=getattr(user, "phone", None),
        user_metadata=dict(getattr(user, "user_metadata", None) or {}),
    )


class SupabaseIdentityProvider:
    """Create users and issue sign-in links through the service-role client."""

    def __init__(self, client: Optional[Client] = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            settings = get_settings()
            self._client = create_client(
                settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
            )
        return self._client

    async def create_phone_user(
        self, phone: str, user_metadata: dict[str, Any]
    ) -> IdentityUser:
        try:
            response = await asyncio.to_thread(
                self.client.auth.admin.create_user,
                {
                    "phone": phone,
                    "phone_confirm": True,
                    "user_metadata": user_metadata,
                },
            )
        except Exception as exc:
            logger.error("Identity provider user creation failed: %s", type(exc).__name__)
            raise NetworkError("Failed to create user account") from exc
        return _to_identity_user(response.user)

    async def get_user(self, user_id: str) -> Optional[IdentityUser]:
        try:
            response = await asyncio.to_thread(
                self.client.auth.admin.get_user_by_id, user_id
            )
        except Exception as exc:
            logger.warning("Identity provider lookup failed for %s: %s", user_id, exc)
            return None
        user = getattr(response, "user", None)
        return _to_identity_user(user) if user else None

    async def generate_magic_link(self, email: str) -> Optional[str]:
        """Return an action link that establishes a session, or None."""
        try:
            response = await asyncio.to_thread(
                self.client.auth.admin.generate_link,
                {"type": "magiclink", "email": email},
            )
        except Exception as exc:
            logger.warning("Magic link generation failed: %s", type(exc).__name__)
            return None
        properties = getattr(response, "properties", None)
        return getattr(properties, "action_link", None)


@lru_cache
def get_identity_provider() -> SupabaseIdentityProvider:
    """FastAPI dependency; override in tests."""
    return SupabaseIdentityProvider()
