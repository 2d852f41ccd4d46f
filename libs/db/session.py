from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from libs.common.errors import translate_db_error
from libs.db.config import AsyncSessionLocal


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an async database session.

    Uncommitted work is rolled back when the request ends.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def commit_or_raise(db: AsyncSession, operation: str) -> None:
    """Commit, or roll back and raise the translated storefront error."""
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise translate_db_error(exc, operation) from exc
