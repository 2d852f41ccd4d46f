"""Admin sign-in and contact inbox."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.rate_limit import auth_limit
from libs.db.session import get_async_db
from services.storefront_service.schemas import (
    AdminLoginRequest,
    AdminTokenResponse,
    ContactReadUpdate,
    ContactSubmissionResponse,
)
from services.storefront_service.services import admin_auth, contact_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-storefront"])


@router.post("/auth/login", response_model=AdminTokenResponse)
@auth_limit
async def admin_login(
    request: Request,
    login_in: AdminLoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Exchange admin credentials for a back-office token."""
    admin, token = await admin_auth.login(
        db, email=login_in.email, password=login_in.password
    )
    return AdminTokenResponse(
        access_token=token,
        expires_in=get_settings().ADMIN_TOKEN_EXPIRE_MINUTES * 60,
        email=admin.email,
        full_name=admin.full_name,
    )


# ============================================================================
# CONTACT SUBMISSIONS
# ============================================================================


@router.get("/contacts", response_model=list[ContactSubmissionResponse])
async def list_contact_submissions(
    is_read: Optional[bool] = None,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await contact_ops.list_submissions(db, is_read=is_read)


@router.patch("/contacts/{submission_id}", response_model=ContactSubmissionResponse)
async def mark_contact_submission(
    submission_id: uuid.UUID,
    update_in: ContactReadUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    return await contact_ops.set_read(db, submission_id, update_in.is_read)


@router.delete("/contacts/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact_submission(
    submission_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    await contact_ops.delete_submission(db, submission_id)
