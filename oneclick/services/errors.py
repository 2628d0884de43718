"""Remote store failure handling shared by the data services."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from oneclick.core.exceptions import RemoteServiceException

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def remote_call(db: AsyncSession, operation: str, **context: object) -> AsyncIterator[None]:
    """
    Run remote store statements, turning driver errors into RemoteServiceException.

    The failure is logged, the transaction rolled back, and the caller gets a
    human-readable message. No retry is attempted.
    """
    try:
        yield
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{operation}_failed", error=str(e), **context)
        raise RemoteServiceException(f"Could not {operation.replace('_', ' ')}")
