from datetime import timedelta
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import bind_caller

settings = get_settings()
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

ADMIN_TOKEN_ALGORITHM = "HS256"
ADMIN_TOKEN_ISSUER = "storefront-admin"


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _identify(request: Request, user: AuthUser) -> AuthUser:
    """Expose the caller to the request log lines, e.g. ``admin:<id>``."""
    caller = f"{'admin' if user.is_admin else 'customer'}:{user.user_id}"
    request.state.caller = caller
    bind_caller(caller)
    return user


def decode_supabase_token(token: str) -> AuthUser:
    """Decode a Supabase access token (HS256, shared JWT secret)."""
    payload = jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=["HS256"],
        options={"verify_aud": False},  # Supabase audiences vary per project
    )
    return AuthUser(**payload)


def create_admin_token(admin_id: str, email: str) -> str:
    """Issue a back-office token for an authenticated admin user."""
    now = utc_now()
    payload = {
        "sub": admin_id,
        "email": email,
        "role": "admin",
        "iss": ADMIN_TOKEN_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int(
            (now + timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES)).timestamp()
        ),
    }
    return jwt.encode(payload, settings.ADMIN_JWT_SECRET, algorithm=ADMIN_TOKEN_ALGORITHM)


def decode_admin_token(token: str) -> AuthUser:
    payload = jwt.decode(
        token,
        settings.ADMIN_JWT_SECRET,
        algorithms=[ADMIN_TOKEN_ALGORITHM],
        issuer=ADMIN_TOKEN_ISSUER,
    )
    return AuthUser(**payload)


async def get_current_user(
    request: Request,
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Validate Supabase JWT and return the authenticated user.
    """
    try:
        return _identify(request, decode_supabase_token(token.credentials))
    except (JWTError, ValidationError):
        raise _credentials_exception()


async def get_optional_user(
    request: Request,
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(optional_security)]
) -> Optional[AuthUser]:
    """
    Like ``get_current_user`` but returns None for anonymous callers.

    Service functions receive the result explicitly and decide whether an
    identity is required.
    """
    if token is None:
        return None
    try:
        return _identify(request, decode_supabase_token(token.credentials))
    except (JWTError, ValidationError):
        raise _credentials_exception()


async def require_admin(
    request: Request,
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Accept back-office admin tokens, or Supabase ``service_role`` tokens for
    automation.
    """
    try:
        admin = decode_admin_token(token.credentials)
    except (JWTError, ValidationError):
        pass
    else:
        return _identify(request, admin)

    try:
        user = decode_supabase_token(token.credentials)
    except (JWTError, ValidationError):
        raise _credentials_exception()

    if user.role != "service_role":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return _identify(request, user)
