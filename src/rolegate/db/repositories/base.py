"""
rolegate.db.repositories.base

Shared repository helpers.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.errors import Conflict, StoreError


async def flush_or_conflict(session: AsyncSession, message: str) -> None:
    """
    Flush pending writes; a unique/foreign-key violation becomes `Conflict`.

    The session is rolled back first so the request can still answer with a
    clean error envelope.
    """

    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict(message, context={"constraint": str(e.orig)}) from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise StoreError(context={"error": str(e)}) from e
