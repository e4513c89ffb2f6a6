"""
rolegate.api.routers.health

Process and schema checks for the load balancer.

Responsibilities:
- `/healthz`: the process answers HTTP.
- `/readyz`: the credential store is reachable and its schema is in place, so a
  login issued right now could be checked. Reports the running version.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate import __version__
from rolegate.api.deps import db_session
from rolegate.db.models import Admin

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Fails with a 500 envelope until tables exist (init_db or alembic upgrade).
    await session.execute(select(func.count()).select_from(Admin))
    return {"status": "ready", "version": __version__}
