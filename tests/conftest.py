"""
tests.conftest

Shared fixtures for the RoleGate test suite.

Responsibilities:
- Build test settings pointing at a fresh SQLite file per test.
- Run the app lifespan explicitly (httpx ASGITransport does not manage it).
- Provide an `Api` helper for registering/logging in principals over HTTP.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from rolegate.api.app import create_app
from rolegate.settings import Settings

TEST_SECRET = "rolegate-test-secret-0123456789abcdef"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password-1"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'rolegate.db'}",
        bcrypt_rounds=4,
        bootstrap_admin_email=ADMIN_EMAIL,
        bootstrap_admin_password=ADMIN_PASSWORD,
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """
    Thin helper over the HTTP API. Each method asserts the happy-path status so
    tests can focus on the behavior they check.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def register_user(
        self, phone: str, *, password: str = "user-password-1", name: str = "Ana"
    ) -> dict[str, Any]:
        r = await self.client.post(
            "/api/users/register",
            json={
                "name": name,
                "last_name": "Lopez",
                "phone": phone,
                "email": f"{phone}@example.com",
                "state": "Jalisco",
                "password": password,
            },
        )
        assert r.status_code == 201, r.text
        return r.json()

    async def register_hospital(self, email: str, *, password: str = "hospital-pass-1") -> dict[str, Any]:
        r = await self.client.post(
            "/api/hospitals/register",
            json={
                "name": "General Hospital",
                "email": email,
                "password": password,
                "phone": "5550001111",
                "address": "1 Main St",
            },
        )
        assert r.status_code == 201, r.text
        return r.json()

    async def login(self, role: str, identifier: str, secret: str | None = None) -> httpx.Response:
        body: dict[str, Any] = {"role": role, "identifier": identifier}
        if secret is not None:
            body["secret"] = secret
        return await self.client.post("/api/auth/login", json=body)

    async def admin_token(self) -> str:
        r = await self.login("admin", ADMIN_EMAIL, ADMIN_PASSWORD)
        assert r.status_code == 200, r.text
        return r.json()["token"]

    async def provision_agency(self, admin_token: str, *, name: str = "Wanderlust", trip_limit: int = 100) -> dict[str, Any]:
        r = await self.client.post(
            "/api/admin/agencies",
            headers=bearer(admin_token),
            json={
                "name": name,
                "state": "Jalisco",
                "city": "Guadalajara",
                "phone": "3330001111",
                "trip_limit": trip_limit,
            },
        )
        assert r.status_code == 201, r.text
        return r.json()

    async def agency_token(self, access_code: str) -> str:
        r = await self.login("agency", access_code)
        assert r.status_code == 200, r.text
        return r.json()["token"]

    async def create_trip(self, agency_token: str, **overrides: Any) -> dict[str, Any]:
        body: dict[str, Any] = {
            "title": "Tequila weekend",
            "description": "Two days in the agave fields",
            "state": "Jalisco",
            "city": "Tequila",
            "price": 2500.0,
            "start_date": "2099-05-01",
            "end_date": "2099-05-03",
            "itinerary": "Day 1: distillery. Day 2: town.",
            "min_votes": 2,
            "max_seats": 3,
        }
        body.update(overrides)
        r = await self.client.post("/api/agency/trips", headers=bearer(agency_token), json=body)
        assert r.status_code == 201, r.text
        return r.json()["trip"]


@pytest.fixture
def api(client: httpx.AsyncClient) -> Api:
    return Api(client)
