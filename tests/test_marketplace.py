"""
tests.test_marketplace

Trip voting, booking and agency-side management.
"""

from __future__ import annotations

from datetime import date

import httpx
import pytest
from fastapi import FastAPI

from conftest import Api, bearer
from rolegate.db.models import Agency, Trip, TripStatus, User
from rolegate.errors import Conflict
from rolegate.services.marketplace import MarketplaceService


@pytest.mark.asyncio
async def test_vote_activation_and_booking_flow(api: Api, client: httpx.AsyncClient) -> None:
    admin = await api.admin_token()
    agency = await api.agency_token((await api.provision_agency(admin))["access_code"])
    trip = await api.create_trip(agency, min_votes=2, max_seats=3)
    assert trip["status"] == "voting"

    u1 = await api.register_user("5554440001")
    u2 = await api.register_user("5554440002")

    # Not bookable while still voting.
    r = await client.post(f"/api/trips/{trip['id']}/bookings", headers=bearer(u1["token"]), json={})
    assert r.status_code == 400

    r = await client.post(f"/api/trips/{trip['id']}/votes", headers=bearer(u1["token"]))
    assert r.status_code == 201
    assert r.json()["status"] == "voting"

    r = await client.post(f"/api/trips/{trip['id']}/votes", headers=bearer(u1["token"]))
    assert r.status_code == 409

    r = await client.post(f"/api/trips/{trip['id']}/votes", headers=bearer(u2["token"]))
    assert r.json() == {"success": True, "trip_id": trip["id"], "status": "activated", "votes": 2}

    r = await client.post(
        f"/api/trips/{trip['id']}/bookings", headers=bearer(u1["token"]), json={"seats": 2}
    )
    assert r.status_code == 201
    booking_id = r.json()["booking"]["id"]

    r = await client.post(
        f"/api/trips/{trip['id']}/bookings", headers=bearer(u2["token"]), json={"seats": 2}
    )
    assert r.status_code == 400
    assert r.json()["error"] == "not enough seats left"

    agency_id = trip["agency_id"]
    r = await client.get(f"/api/agencies/{agency_id}/bookings", headers=bearer(agency))
    assert [b["id"] for b in r.json()["bookings"]] == [booking_id]
    assert "password_hash" not in r.text

    r = await client.put(
        f"/api/agency/bookings/{booking_id}/status",
        headers=bearer(agency),
        json={"status": "confirmed"},
    )
    assert r.status_code == 200

    u1_id = u1["principal"]["id"]
    r = await client.get(f"/api/users/{u1_id}/notifications", headers=bearer(u1["token"]))
    assert r.json()["unread"] == 1
    notification_id = r.json()["notifications"][0]["id"]

    r = await client.get(f"/api/users/{u1_id}/stats", headers=bearer(u1["token"]))
    assert r.json()["stats"] == {
        "has_voted_today": True,
        "total_votes": 1,
        "upcoming_trips": 1,
        "new_notifications": 1,
    }

    r = await client.put(
        f"/api/users/{u1_id}/notifications/{notification_id}/read", headers=bearer(u1["token"])
    )
    assert r.status_code == 200
    r = await client.delete(
        f"/api/users/{u1_id}/notifications/{notification_id}", headers=bearer(u1["token"])
    )
    assert r.status_code == 200
    r = await client.delete(
        f"/api/users/{u1_id}/notifications/{notification_id}", headers=bearer(u1["token"])
    )
    assert r.status_code == 404

    r = await client.get(f"/api/users/{u1_id}/trips", headers=bearer(u1["token"]))
    assert r.json()["trips"][0]["booking_status"] == "confirmed"


@pytest.mark.asyncio
async def test_agency_resources_are_scoped(api: Api, client: httpx.AsyncClient) -> None:
    admin = await api.admin_token()
    a1 = await api.agency_token((await api.provision_agency(admin, name="One"))["access_code"])
    a2 = await api.agency_token((await api.provision_agency(admin, name="Two"))["access_code"])
    trip = await api.create_trip(a1)

    r = await client.put(
        f"/api/agency/trips/{trip['id']}/status", headers=bearer(a2), json={"status": "cancelled"}
    )
    assert r.status_code == 404
    assert r.json()["error"] == "trip not found"

    r = await client.get(f"/api/agencies/{trip['agency_id']}/trips", headers=bearer(a2))
    assert r.status_code == 403

    r = await client.put(
        f"/api/agency/trips/{trip['id']}/status", headers=bearer(a1), json={"status": "cancelled"}
    )
    assert r.json()["trip"]["status"] == "cancelled"


@pytest.mark.asyncio
async def test_trip_limit_and_dates(api: Api, client: httpx.AsyncClient) -> None:
    admin = await api.admin_token()
    agency = await api.agency_token((await api.provision_agency(admin, trip_limit=1))["access_code"])

    r = await client.post(
        "/api/agency/trips",
        headers=bearer(agency),
        json={
            "title": "Backwards",
            "description": "d",
            "state": "s",
            "city": "c",
            "price": 1,
            "start_date": "2099-05-03",
            "end_date": "2099-05-01",
            "itinerary": "i",
        },
    )
    assert r.status_code == 400

    await api.create_trip(agency)
    r = await client.post(
        "/api/agency/trips",
        headers=bearer(agency),
        json={
            "title": "One too many",
            "description": "d",
            "state": "s",
            "city": "c",
            "price": 1,
            "start_date": "2099-05-01",
            "end_date": "2099-05-02",
            "itinerary": "i",
        },
    )
    assert r.status_code == 400
    assert r.json()["error"] == "trip limit reached"


@pytest.mark.asyncio
async def test_reviews(api: Api, client: httpx.AsyncClient) -> None:
    admin = await api.admin_token()
    agency = await api.agency_token((await api.provision_agency(admin))["access_code"])
    trip = await api.create_trip(agency)
    user = await api.register_user("5554440003")
    user_id = user["principal"]["id"]

    r = await client.post(
        f"/api/users/{user_id}/reviews",
        headers=bearer(user["token"]),
        json={"kind": "trip", "trip_id": trip["id"], "rating": 5, "comment": "great"},
    )
    assert r.status_code == 201
    assert r.json()["review"]["agency_id"] == trip["agency_id"]

    r = await client.post(
        f"/api/users/{user_id}/reviews",
        headers=bearer(user["token"]),
        json={"kind": "agency", "agency_id": 9999, "rating": 3},
    )
    assert r.status_code == 404

    r = await client.post(
        f"/api/users/{user_id}/reviews",
        headers=bearer(user["token"]),
        json={"kind": "trip", "trip_id": trip["id"], "rating": 6},
    )
    assert r.status_code == 400

    r = await client.get(f"/api/users/{user_id}/reviews", headers=bearer(user["token"]))
    assert r.json()["reviews"][0]["trip_title"] == "Tequila weekend"


@pytest.mark.asyncio
async def test_one_vote_per_calendar_day(app: FastAPI) -> None:
    session_factory = app.state.sessionmaker
    async with session_factory() as session:
        user = User(
            name="Ana", last_name="L", phone="5554440010", state="J", password_hash="x"
        )
        agency = Agency(name="A", code_hash="h" * 64, state="J", city="G", phone="3330000000")
        session.add_all([user, agency])
        await session.flush()
        trips = [
            Trip(
                agency_id=agency.id,
                title=f"T{i}",
                description="d",
                state="s",
                city="c",
                price=1.0,
                start_date=date(2099, 1, 1),
                end_date=date(2099, 1, 2),
                itinerary="i",
                min_votes=10,
            )
            for i in range(3)
        ]
        session.add_all(trips)
        await session.commit()
        user_id, trip_ids = user.id, [t.id for t in trips]

    day = {"value": date(2030, 1, 1)}

    def today() -> date:
        return day["value"]

    async with session_factory() as session:
        svc = MarketplaceService(session, today=today)
        await svc.vote(user_id=user_id, trip_id=trip_ids[0])
        with pytest.raises(Conflict):
            await svc.vote(user_id=user_id, trip_id=trip_ids[1])

    day["value"] = date(2030, 1, 2)
    async with session_factory() as session:
        svc = MarketplaceService(session, today=today)
        trip = await svc.vote(user_id=user_id, trip_id=trip_ids[1])
        assert trip.status == TripStatus.voting
        # A trip can only be voted once per user, whatever the day.
        day["value"] = date(2030, 1, 3)
        with pytest.raises(Conflict):
            await svc.vote(user_id=user_id, trip_id=trip_ids[0])
