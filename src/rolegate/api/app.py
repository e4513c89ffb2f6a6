"""
rolegate.api.app

FastAPI app factory for the RoleGate service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Build the auth objects (token codec, secret hasher, guard) from the injected
  settings and keep them on app.state.
- Initialize and dispose shared infrastructure (DB engine/session factory).
- Seed the bootstrap admin when configured.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate import __version__
from rolegate.api.errors import register_exception_handlers
from rolegate.api.routers.admin import router as admin_router
from rolegate.api.routers.agencies import router as agencies_router
from rolegate.api.routers.auth import router as auth_router
from rolegate.api.routers.health import router as health_router
from rolegate.api.routers.hospitals import router as hospitals_router
from rolegate.api.routers.qr_codes import router as qr_codes_router
from rolegate.api.routers.users import router as users_router
from rolegate.auth.guard import AuthorizationGuard
from rolegate.auth.passwords import SecretHasher
from rolegate.auth.service import AuthenticationService
from rolegate.auth.tokens import JwtConfig, TokenCodec
from rolegate.db.init_db import init_db
from rolegate.db.session import create_engine, create_sessionmaker
from rolegate.observability.logging import configure_logging, get_logger
from rolegate.observability.middleware import RequestContextMiddleware
from rolegate.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    codec = TokenCodec(JwtConfig.from_settings(settings))
    hasher = SecretHasher(rounds=settings.bcrypt_rounds, code_key=settings.jwt_secret)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Create the async DB engine and session factory once and stash them on app.state.
        # Routers obtain sessions via dependencies (see `rolegate.api.deps`).
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        try:
            if settings.env in ("dev", "test"):
                # Prod uses Alembic migrations instead.
                await init_db(engine)
            await _bootstrap_admin(settings, app.state.sessionmaker, codec, hasher)
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="RoleGate",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.codec = codec
    app.state.hasher = hasher
    app.state.guard = AuthorizationGuard(codec)

    app.add_middleware(RequestContextMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(agencies_router)
    app.include_router(admin_router)
    app.include_router(qr_codes_router)
    app.include_router(hospitals_router)

    return app


async def _bootstrap_admin(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    codec: TokenCodec,
    hasher: SecretHasher,
) -> None:
    if not (settings.bootstrap_admin_email and settings.bootstrap_admin_password):
        return
    async with session_factory() as session:
        svc = AuthenticationService(session=session, settings=settings, codec=codec, hasher=hasher)
        await svc.ensure_admin(
            email=settings.bootstrap_admin_email, password=settings.bootstrap_admin_password
        )


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business rules live in services and the guard.
