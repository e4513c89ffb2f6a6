"""
rolegate.api.routers.agencies

Agency-facing marketplace endpoints.

Responsibilities:
- Agency profile, trip list and pending bookings under
  `/api/agencies/{agency_id}/...` (ownership of `agency_id`; admins bypass).
- Trip creation and trip/booking status changes under `/api/agency/...`, on the
  calling agency's own resources only.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import db_session
from rolegate.api.serializers import agency_out, booking_out, trip_out, user_out
from rolegate.auth.deps import require
from rolegate.auth.models import Principal, Role
from rolegate.db.models import BookingStatus, TripStatus
from rolegate.db.repositories.bookings import BookingRepo
from rolegate.db.repositories.principals import AgencyRepo
from rolegate.db.repositories.trips import TripRepo
from rolegate.errors import BadRequest, NotFound
from rolegate.services.marketplace import MarketplaceService

router = APIRouter(prefix="/api", tags=["agencies"])

owner_or_admin = require(Role.agency, Role.admin, owner="agency_id")
agency_only = require(Role.agency)


class AgencyProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    state: str | None = Field(default=None, min_length=1, max_length=128)
    city: str | None = Field(default=None, min_length=1, max_length=128)
    phone: str | None = Field(default=None, min_length=6, max_length=32)
    description: str | None = Field(default=None, max_length=4000)
    logo_url: str | None = Field(default=None, max_length=512)
    bg_url: str | None = Field(default=None, max_length=512)


class TripCreate(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    description: str = Field(min_length=1, max_length=10_000)
    state: str = Field(min_length=1, max_length=128)
    city: str = Field(min_length=1, max_length=128)
    price: float = Field(ge=0)
    start_date: date
    end_date: date
    images: list[str] = Field(default_factory=list, max_length=10)
    video_url: str | None = Field(default=None, max_length=512)
    itinerary: str = Field(min_length=1, max_length=20_000)
    min_votes: int = Field(default=10, ge=1, le=10_000)
    max_seats: int = Field(default=20, ge=1, le=10_000)


class TripStatusUpdate(BaseModel):
    status: TripStatus


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


@router.get("/agencies/{agency_id}/profile", dependencies=[Depends(owner_or_admin)])
async def get_profile(
    agency_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    agency = await AgencyRepo(session).get(agency_id)
    if agency is None:
        raise NotFound("agency")
    return {"success": True, "agency": agency_out(agency)}


@router.put("/agencies/{agency_id}/profile", dependencies=[Depends(owner_or_admin)])
async def update_profile(
    agency_id: int,
    body: AgencyProfileUpdate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        raise BadRequest("no fields to update")
    agency = await AgencyRepo(session).update(agency_id, fields)
    if agency is None:
        raise NotFound("agency")
    await session.commit()
    return {"success": True, "agency": agency_out(agency)}


@router.get("/agencies/{agency_id}/trips", dependencies=[Depends(owner_or_admin)])
async def list_trips(agency_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await TripRepo(session).list_for_agency(agency_id)
    return {
        "success": True,
        "trips": [
            {**trip_out(trip), "votes": votes, "booked_seats": booked}
            for trip, votes, booked in rows
        ],
    }


@router.get("/agencies/{agency_id}/bookings", dependencies=[Depends(owner_or_admin)])
async def pending_bookings(
    agency_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    rows = await BookingRepo(session).list_pending_for_agency(agency_id)
    return {
        "success": True,
        "bookings": [
            {**booking_out(booking), "trip_title": title, "user": user_out(user)}
            for booking, user, title in rows
        ],
    }


@router.post("/agency/trips", status_code=HTTP_201_CREATED)
async def create_trip(
    body: TripCreate,
    principal: Principal = Depends(agency_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    trip = await MarketplaceService(session).create_trip(
        agency_id=principal.id, fields=body.model_dump()
    )
    return {"success": True, "trip": trip_out(trip)}


@router.put("/agency/trips/{trip_id}/status")
async def set_trip_status(
    trip_id: int,
    body: TripStatusUpdate,
    principal: Principal = Depends(agency_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    trip = await MarketplaceService(session).set_trip_status(
        agency_id=principal.id, trip_id=trip_id, status=body.status
    )
    return {"success": True, "trip": trip_out(trip)}


@router.put("/agency/bookings/{booking_id}/status")
async def set_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    principal: Principal = Depends(agency_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    booking = await MarketplaceService(session).set_booking_status(
        agency_id=principal.id, booking_id=booking_id, status=body.status
    )
    return {"success": True, "booking": booking_out(booking)}
