"""
tests.test_ownership

Ownership isolation between principals and the admin bypass.

Path-addressed owners (`/users/{user_id}/...`) answer 403 on mismatch;
resources addressed by their own id answer 404 to non-owners.
"""

from __future__ import annotations

import httpx
import pytest

from conftest import Api, bearer


@pytest.mark.asyncio
async def test_users_cannot_touch_each_others_qr_codes(api: Api, client: httpx.AsyncClient) -> None:
    alice = await api.register_user("5552220001", name="Alice")
    bob = await api.register_user("5552220002", name="Bob")
    alice_id, bob_id = alice["principal"]["id"], bob["principal"]["id"]

    r = await client.post(
        f"/api/users/{alice_id}/qr-codes",
        headers=bearer(alice["token"]),
        json={"label": "Menu", "content": "https://example.com/menu"},
    )
    assert r.status_code == 201
    qr_id = r.json()["qr_code"]["id"]

    # Bob addressing Alice's collection: path owner mismatch.
    r = await client.get(f"/api/users/{alice_id}/qr-codes/{qr_id}", headers=bearer(bob["token"]))
    assert r.status_code == 403

    # Bob addressing Alice's QR code through his own collection: not found.
    for method in ("GET", "PUT", "DELETE"):
        r = await client.request(
            method,
            f"/api/users/{bob_id}/qr-codes/{qr_id}",
            headers=bearer(bob["token"]),
            json={"label": "stolen"} if method == "PUT" else None,
        )
        assert r.status_code == 404, method
        assert r.json() == {"success": False, "error": "qr code not found"}

    r = await client.get(f"/api/users/{bob_id}/qr-codes", headers=bearer(bob["token"]))
    assert r.json()["qr_codes"] == []

    r = await client.put(
        f"/api/users/{alice_id}/qr-codes/{qr_id}",
        headers=bearer(alice["token"]),
        json={"label": "Dinner menu", "is_active": False},
    )
    assert r.status_code == 200
    assert r.json()["qr_code"]["label"] == "Dinner menu"
    assert r.json()["qr_code"]["is_active"] is False


@pytest.mark.asyncio
async def test_admin_bypasses_ownership_but_not_roles(api: Api, client: httpx.AsyncClient) -> None:
    alice = await api.register_user("5552220003", name="Alice")
    alice_id = alice["principal"]["id"]
    admin = await api.admin_token()

    r = await client.get(f"/api/users/{alice_id}/profile", headers=bearer(admin))
    assert r.status_code == 200
    assert r.json()["user"]["name"] == "Alice"

    r = await client.get(f"/api/users/{alice_id}/qr-codes", headers=bearer(admin))
    assert r.status_code == 200

    # Hospital-only routes do not list admin.
    r = await client.get("/api/stats", headers=bearer(admin))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_roles_are_not_interchangeable(api: Api, client: httpx.AsyncClient) -> None:
    alice = await api.register_user("5552220004")
    hospital = await api.register_hospital("h1@example.com")

    r = await client.get("/api/admin/stats", headers=bearer(alice["token"]))
    assert r.status_code == 403

    # Same numeric id, different role: still not the owner.
    r = await client.get(
        f"/api/users/{hospital['principal']['id']}/profile", headers=bearer(hospital["token"])
    )
    assert r.status_code == 403

    r = await client.post("/api/patients", headers=bearer(alice["token"]), json={})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_hospitals_only_see_their_own_patients(api: Api, client: httpx.AsyncClient) -> None:
    h1 = await api.register_hospital("h2@example.com")
    h2 = await api.register_hospital("h3@example.com")

    r = await client.post(
        "/api/patients",
        headers=bearer(h1["token"]),
        json={
            "child_name": "Leo",
            "mother_name": "Maria",
            "mother_phone": "5553330001",
            "birth_date": "2024-01-15",
            "gender": "male",
        },
    )
    assert r.status_code == 201
    patient_id = r.json()["patient"]["id"]
    vaccine_id = r.json()["vaccines"][0]["id"]

    r = await client.get(f"/api/patients/{patient_id}", headers=bearer(h2["token"]))
    assert r.status_code == 404
    r = await client.put(
        f"/api/vaccines/{vaccine_id}", headers=bearer(h2["token"]), json={"status": "completed"}
    )
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "vaccine not found"}

    r = await client.get("/api/patients", headers=bearer(h2["token"]))
    assert r.json()["patients"] == []
