"""
rolegate.db.init_db

Schema creation for `env=dev` and `env=test`.

The app lifespan calls `init_db` before seeding the bootstrap admin, so a fresh
SQLite file is usable without running migrations. Existing tables are left as
they are; column changes need an Alembic revision.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from rolegate.db import models  # noqa: F401  # registers tables on Base.metadata
from rolegate.db.base import Base
from rolegate.observability.logging import get_logger

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("schema_ready", tables=len(Base.metadata.tables))
