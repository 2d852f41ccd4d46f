from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class AuthUser(BaseModel):
    """
    Represents an authenticated caller, decoded from a bearer token.

    Customers carry Supabase claims; back-office staff carry an admin token
    issued by ``/admin/store/auth/login``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: str = "authenticated"
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "service_role")

    @property
    def display_name(self) -> Optional[str]:
        first = self.user_metadata.get("first_name")
        last = self.user_metadata.get("last_name")
        name = " ".join(part for part in (first, last) if part)
        return name or self.user_metadata.get("full_name")

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        # Phone-only identities carry empty email claims
        return v or None
