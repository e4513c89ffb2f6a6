"""
rolegate.api.routers.users

User-facing marketplace endpoints.

Responsibilities:
- Profile, dashboard counters, trips, reviews and notifications of one user,
  all addressed as `/api/users/{user_id}/...` and gated by ownership of
  `user_id` (admins may read and act on any user).
- Voting and booking on trips, on behalf of the calling user.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import db_session
from rolegate.api.routers.auth import Phone
from rolegate.api.serializers import (
    booking_out,
    notification_out,
    review_out,
    trip_out,
    user_out,
)
from rolegate.auth.deps import require
from rolegate.auth.models import Principal, Role
from rolegate.db.models import ReviewKind
from rolegate.db.repositories.bookings import BookingRepo
from rolegate.db.repositories.engagement import NotificationRepo, ReviewRepo
from rolegate.db.repositories.principals import UserRepo
from rolegate.db.repositories.trips import TripRepo, VoteRepo
from rolegate.errors import BadRequest, NotFound
from rolegate.services.clock import utc_today
from rolegate.services.marketplace import MarketplaceService

router = APIRouter(prefix="/api", tags=["users"])

owner_or_admin = require(Role.user, Role.admin, owner="user_id")
user_only = require(Role.user)


class UserProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=128)
    last_name: str | None = Field(default=None, min_length=1, max_length=128)
    phone: Phone | None = None
    email: EmailStr | None = None
    state: str | None = Field(default=None, min_length=1, max_length=128)


class BookingRequest(BaseModel):
    seats: int = Field(default=1, ge=1, le=50)
    notes: str | None = Field(default=None, max_length=2000)


class ReviewRequest(BaseModel):
    kind: ReviewKind
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)
    trip_id: int | None = None
    agency_id: int | None = None


# -- profile / dashboard ---------------------------------------------------------


@router.get("/users/{user_id}/profile", dependencies=[Depends(owner_or_admin)])
async def get_profile(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    user = await UserRepo(session).get(user_id)
    if user is None:
        raise NotFound("user")
    return {"success": True, "user": user_out(user)}


@router.put("/users/{user_id}/profile", dependencies=[Depends(owner_or_admin)])
async def update_profile(
    user_id: int,
    body: UserProfileUpdate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        raise BadRequest("no fields to update")
    user = await UserRepo(session).update_profile(user_id, fields)
    if user is None:
        raise NotFound("user")
    await session.commit()
    return {"success": True, "user": user_out(user)}


@router.get("/users/{user_id}/stats", dependencies=[Depends(owner_or_admin)])
async def user_stats(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    stats = await MarketplaceService(session).user_stats(user_id)
    return {"success": True, "stats": stats}


@router.get("/users/{user_id}/voting-trips", dependencies=[Depends(owner_or_admin)])
async def voting_trips(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await TripRepo(session).list_voting()
    voted_today = await VoteRepo(session).has_voted_on(user_id, utc_today())
    return {
        "success": True,
        "has_voted_today": voted_today,
        "trips": [
            {**trip_out(trip), "agency_name": agency_name, "votes": votes}
            for trip, agency_name, votes in rows
        ],
    }


@router.get("/users/{user_id}/trips", dependencies=[Depends(owner_or_admin)])
async def user_trips(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await BookingRepo(session).list_trips_for_user(user_id)
    return {
        "success": True,
        "trips": [
            {**trip_out(trip), "booking_status": status.value, "agency_name": agency_name}
            for trip, status, agency_name in rows
        ],
    }


# -- votes / bookings -------------------------------------------------------------


@router.post("/trips/{trip_id}/votes", status_code=HTTP_201_CREATED)
async def vote(
    trip_id: int,
    principal: Principal = Depends(user_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    trip = await MarketplaceService(session).vote(user_id=principal.id, trip_id=trip_id)
    votes = await TripRepo(session).vote_count(trip_id)
    return {"success": True, "trip_id": trip.id, "status": trip.status.value, "votes": votes}


@router.post("/trips/{trip_id}/bookings", status_code=HTTP_201_CREATED)
async def book(
    trip_id: int,
    body: BookingRequest,
    principal: Principal = Depends(user_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    booking = await MarketplaceService(session).book(
        user_id=principal.id, trip_id=trip_id, seats=body.seats, notes=body.notes
    )
    return {"success": True, "booking": booking_out(booking)}


# -- reviews ------------------------------------------------------------------------


@router.get("/users/{user_id}/reviews", dependencies=[Depends(owner_or_admin)])
async def list_reviews(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await ReviewRepo(session).list_for_user(user_id)
    return {
        "success": True,
        "reviews": [
            {**review_out(review), "trip_title": trip_title, "agency_name": agency_name}
            for review, trip_title, agency_name in rows
        ],
    }


@router.post(
    "/users/{user_id}/reviews",
    status_code=HTTP_201_CREATED,
    dependencies=[Depends(owner_or_admin)],
)
async def create_review(
    user_id: int,
    body: ReviewRequest,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    review = await MarketplaceService(session).review(user_id=user_id, **body.model_dump())
    return {"success": True, "review": review_out(review)}


# -- notifications -----------------------------------------------------------------


@router.get("/users/{user_id}/notifications", dependencies=[Depends(owner_or_admin)])
async def list_notifications(
    user_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    repo = NotificationRepo(session)
    items = await repo.list_for_user(user_id)
    return {
        "success": True,
        "unread": await repo.count_unread(user_id),
        "notifications": [notification_out(n) for n in items],
    }


@router.put("/users/{user_id}/notifications/read-all", dependencies=[Depends(owner_or_admin)])
async def read_all_notifications(
    user_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    updated = await NotificationRepo(session).mark_all_read(user_id)
    await session.commit()
    return {"success": True, "updated": updated}


@router.put(
    "/users/{user_id}/notifications/{notification_id}/read",
    dependencies=[Depends(owner_or_admin)],
)
async def read_notification(
    user_id: int,
    notification_id: int,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not await NotificationRepo(session).mark_read(notification_id, user_id):
        raise NotFound("notification")
    await session.commit()
    return {"success": True}


@router.delete(
    "/users/{user_id}/notifications/{notification_id}",
    dependencies=[Depends(owner_or_admin)],
)
async def delete_notification(
    user_id: int,
    notification_id: int,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not await NotificationRepo(session).delete(notification_id, user_id):
        raise NotFound("notification")
    await session.commit()
    return {"success": True}


# --- Module Notes -----------------------------------------------------------
# Queries use the path's user_id rather than the caller's id, so an admin acting
# on a user sees exactly what that user sees.
