"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and the readiness check reaches the DB in test mode.
- Ensure a missing signing secret stops the process before it starts.
"""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from rolegate import __version__
from rolegate.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.headers["x-request-id"]

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"
    assert r.json()["version"] == __version__


def test_settings_refuse_missing_or_short_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ROLEGATE_JWT_SECRET", raising=False)
    with pytest.raises(ValidationError):
        Settings()
    with pytest.raises(ValidationError):
        Settings(jwt_secret="too-short")


def test_settings_hide_secret_and_pick_ttl_per_role() -> None:
    s = Settings(jwt_secret="s" * 40, token_ttl_hours=24, hospital_token_ttl_hours=168)
    assert "s" * 40 not in repr(s)
    assert s.token_ttl_for("user").total_seconds() == 24 * 3600
    assert s.token_ttl_for("hospital").total_seconds() == 168 * 3600


@pytest.mark.asyncio
async def test_unknown_route_uses_error_envelope(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "not found"}
