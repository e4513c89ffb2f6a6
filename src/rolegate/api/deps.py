"""
rolegate.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and auth services.
- Encapsulate app.state access patterns (settings/sessionmaker/codec/hasher).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.auth.passwords import SecretHasher
from rolegate.auth.service import AuthenticationService
from rolegate.auth.tokens import TokenCodec
from rolegate.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The instance passed to `create_app`, never a module-level global.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `rolegate.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def auth_service(
    request: Request,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AuthenticationService:
    codec: TokenCodec = request.app.state.codec
    hasher: SecretHasher = request.app.state.hasher
    return AuthenticationService(session=session, settings=settings, codec=codec, hasher=hasher)


# --- Module Notes -----------------------------------------------------------
# Everything reachable from app.state is built once per process in create_app.
