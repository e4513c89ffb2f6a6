"""
tests.test_auth_api

Login, registration and the 401 error envelope over HTTP.
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from conftest import Api, bearer
from rolegate.auth import service as auth_service
from rolegate.db.repositories.audit import AuditRepo


@pytest.mark.asyncio
async def test_register_login_and_read_own_profile(api: Api, client: httpx.AsyncClient) -> None:
    registered = await api.register_user("5551230001")
    user_id = registered["principal"]["id"]
    assert registered["success"] is True
    assert registered["principal"] == {"id": user_id, "role": "user", "name": "Ana"}

    r = await api.login("user", "5551230001", "user-password-1")
    assert r.status_code == 200
    token = r.json()["token"]

    # Email works as the identifier too.
    r = await api.login("user", "5551230001@example.com", "user-password-1")
    assert r.status_code == 200

    r = await client.get(f"/api/users/{user_id}/profile", headers=bearer(token))
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["phone"] == "5551230001"
    assert "password" not in r.text

    r = await client.get("/api/auth/me", headers=bearer(token))
    assert r.json()["principal"]["id"] == user_id

    other = await api.register_user("5551230002")
    r = await client.get(f"/api/users/{other['principal']['id']}/profile", headers=bearer(token))
    assert r.status_code == 403
    assert r.json() == {"success": False, "error": "forbidden"}


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(api: Api, client: httpx.AsyncClient) -> None:
    await api.register_user("5551230003", password="right-password")
    inactive = await api.register_user("5551230004", password="right-password")

    admin = await api.admin_token()
    r = await client.put(
        f"/api/admin/users/{inactive['principal']['id']}/status",
        headers=bearer(admin),
        json={"is_active": False},
    )
    assert r.status_code == 200

    unknown = await api.login("user", "5559999999", "right-password")
    wrong = await api.login("user", "5551230003", "wrong-password")
    disabled = await api.login("user", "5551230004", "right-password")
    bad_code = await api.login("agency", "0000000000")

    for r in (unknown, wrong, disabled, bad_code):
        assert r.status_code == 401
        assert r.content == unknown.content
    assert unknown.json() == {"success": False, "error": "invalid credentials"}


@pytest.mark.asyncio
async def test_duplicate_registration_conflicts(api: Api, client: httpx.AsyncClient) -> None:
    await api.register_user("5551230005")
    r = await client.post(
        "/api/users/register",
        json={
            "name": "Eva",
            "last_name": "Ruiz",
            "phone": "5551230005",
            "state": "Sonora",
            "password": "another-password",
        },
    )
    assert r.status_code == 409
    assert r.json()["success"] is False
    assert "constraint" not in r.text.lower()


@pytest.mark.asyncio
async def test_token_errors_use_envelope(client: httpx.AsyncClient) -> None:
    r = await client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "token not provided"}

    r = await client.get("/api/auth/me", headers=bearer("not.a.token"))
    assert r.status_code == 401
    assert r.json() == {"success": False, "error": "invalid token"}


@pytest.mark.asyncio
async def test_invalid_body_is_bad_request(client: httpx.AsyncClient) -> None:
    r = await client.post("/api/auth/login", json={"role": "wizard", "identifier": "x"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "invalid request"

    r = await client.post(
        "/api/users/register",
        json={
            "name": "A",
            "last_name": "B",
            "phone": "5551230009",
            "state": "C",
            "password": "ñ" * 40,  # 80 bytes: over bcrypt's limit
        },
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_hospital_registration_issues_long_lived_token(api: Api) -> None:
    registered = await api.register_hospital("clinic@example.com")
    assert registered["principal"]["role"] == "hospital"
    assert registered["expires_in"] == 168 * 3600

    r = await api.login("hospital", "clinic@example.com", "hospital-pass-1")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_agency_logs_in_with_access_code(api: Api, client: httpx.AsyncClient) -> None:
    admin = await api.admin_token()
    provisioned = await api.provision_agency(admin)
    code = provisioned["access_code"]
    assert len(code) == 10
    assert "code_hash" not in provisioned["agency"]

    token = await api.agency_token(code)
    r = await client.get("/api/auth/me", headers=bearer(token))
    assert r.json()["principal"] == {
        "id": provisioned["agency"]["id"],
        "role": "agency",
        "name": "Wanderlust",
    }

    # The agency-side lookup path must not depend on a password column.
    r = await api.login("agency", code, "ignored")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_email_and_phone_identifiers_never_overlap(
    api: Api, client: httpx.AsyncClient
) -> None:
    await api.register_user("5551112222")

    def register(phone: str, email: str) -> Any:
        return client.post(
            "/api/users/register",
            json={
                "name": "Bea",
                "last_name": "Soto",
                "phone": phone,
                "email": email,
                "state": "Puebla",
                "password": "second-password",
            },
        )

    # Another user's phone number is not an e-mail address.
    r = await register("5551113333", "5551112222")
    assert r.status_code == 400
    assert r.json()["fields"] == ["body.email"]

    r = await register("bea@example.com", "bea@example.com")
    assert r.status_code == 400
    assert r.json()["fields"] == ["body.phone"]

    r = await register("5551113333", "bea@example.com")
    assert r.status_code == 201
    bea = r.json()["principal"]["id"]

    r = await api.login("user", "bea@example.com", "second-password")
    assert r.json()["principal"]["id"] == bea
    r = await api.login("user", "5551112222", "user-password-1")
    assert r.status_code == 200
    assert r.json()["principal"]["id"] != bea


@pytest.mark.asyncio
async def test_explicit_null_update_is_bad_request(api: Api, client: httpx.AsyncClient) -> None:
    registered = await api.register_user("5551230010")
    user_id = registered["principal"]["id"]
    headers = bearer(registered["token"])

    r = await client.put(f"/api/users/{user_id}/profile", headers=headers, json={"name": None})
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "no fields to update"}

    r = await client.put(
        f"/api/users/{user_id}/profile", headers=headers, json={"name": None, "state": "Colima"}
    )
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Ana"
    assert r.json()["user"]["state"] == "Colima"

    admin = await api.admin_token()
    agency_id = (await api.provision_agency(admin))["agency"]["id"]
    r = await client.put(
        f"/api/admin/agencies/{agency_id}", headers=bearer(admin), json={"phone": None}
    )
    assert r.status_code == 400


class _RecordingLog:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def info(self, event: str, **kw: Any) -> None:
        self.events.append((event, kw))

    warning = info


@pytest.mark.asyncio
async def test_login_survives_a_failed_audit_write(
    api: Api, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    registered = await api.register_user("5551230011")
    user_id = registered["principal"]["id"]

    async def broken_add(self: AuditRepo, **kw: Any) -> None:
        raise OperationalError("INSERT INTO audit_events", {}, Exception("disk I/O error"))

    recorder = _RecordingLog()
    monkeypatch.setattr(AuditRepo, "add", broken_add)
    monkeypatch.setattr(auth_service, "log", recorder)

    r = await api.login("user", "5551230011", "user-password-1")
    assert r.status_code == 200
    token = r.json()["token"]
    assert (await client.get("/api/auth/me", headers=bearer(token))).status_code == 200

    names = [event for event, _ in recorder.events]
    assert "login_audit_failed" in names
    assert "login_succeeded" in names
    failed = dict(recorder.events)["login_audit_failed"]
    assert failed["principal_id"] == user_id

    monkeypatch.undo()
    admin = await api.admin_token()
    r = await client.get(
        "/api/admin/audit", params={"role": "user", "principal_id": user_id}, headers=bearer(admin)
    )
    # Registration logs nothing and the failed write rolled back to its savepoint.
    assert r.json()["events"] == []
