"""Contact form submissions and their back-office triage."""

import uuid
from typing import List, Optional

from libs.common.errors import NotFound
from libs.common.logging import get_logger
from libs.db.session import commit_or_raise
from services.storefront_service.models import ContactSubmission
from services.storefront_service.schemas import ContactSubmissionCreate
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def submit_contact_form(
    db: AsyncSession, data: ContactSubmissionCreate
) -> ContactSubmission:
    submission = ContactSubmission(
        name=data.name,
        email=data.email,
        phone=data.phone,
        subject=f"Contact Form Submission from {data.name}",
        message=data.message,
        is_read=False,
    )
    db.add(submission)
    await commit_or_raise(db, "contact.submit")
    logger.info("Contact submission %s received", submission.id)
    return submission


async def list_submissions(
    db: AsyncSession, *, is_read: Optional[bool] = None
) -> List[ContactSubmission]:
    query = select(ContactSubmission)
    if is_read is not None:
        query = query.where(ContactSubmission.is_read.is_(is_read))
    result = await db.execute(query.order_by(ContactSubmission.created_at.desc()))
    return list(result.scalars().all())


async def _get_submission(db: AsyncSession, submission_id: uuid.UUID) -> ContactSubmission:
    submission = await db.get(ContactSubmission, submission_id)
    if submission is None:
        raise NotFound("Message not found.")
    return submission


async def set_read(
    db: AsyncSession, submission_id: uuid.UUID, is_read: bool
) -> ContactSubmission:
    submission = await _get_submission(db, submission_id)
    submission.is_read = is_read
    await commit_or_raise(db, "contact.set_read")
    return submission


async def delete_submission(db: AsyncSession, submission_id: uuid.UUID) -> None:
    submission = await _get_submission(db, submission_id)
    await db.delete(submission)
    await commit_or_raise(db, "contact.delete")
