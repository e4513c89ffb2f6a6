"""
rolegate.services.marketplace

Trip voting / booking marketplace rules.

Responsibilities:
- Daily voting: one vote per user per UTC day, trips activate at `min_votes`.
- Bookings: only on activated trips, bounded by remaining seats.
- Agency trip creation bounded by the agency's `trip_limit`.
- Booking status changes notify the booking user.
- Reviews of a trip or an agency.
- Per-user dashboard counters.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Booking, BookingStatus, Review, ReviewKind, Trip, TripStatus
from rolegate.db.repositories.bookings import BookingRepo
from rolegate.db.repositories.engagement import NotificationRepo, ReviewRepo
from rolegate.db.repositories.principals import AgencyRepo
from rolegate.db.repositories.trips import TripRepo, VoteRepo
from rolegate.errors import BadRequest, Conflict, NotFound
from rolegate.observability.logging import get_logger
from rolegate.services.clock import utc_today

log = get_logger(__name__)


class MarketplaceService:
    def __init__(self, session: AsyncSession, *, today: Callable[[], date] = utc_today) -> None:
        self._session = session
        self._today = today

        self._trips = TripRepo(session)
        self._votes = VoteRepo(session)
        self._bookings = BookingRepo(session)
        self._agencies = AgencyRepo(session)
        self._notifications = NotificationRepo(session)
        self._reviews = ReviewRepo(session)

    async def vote(self, *, user_id: int, trip_id: int) -> Trip:
        trip = await self._trips.get(trip_id)
        if trip is None:
            raise NotFound("trip")
        if trip.status != TripStatus.voting:
            raise BadRequest("trip is not open for voting")

        day = self._today()
        if await self._votes.has_voted_on(user_id, day):
            raise Conflict("already voted today")
        # The unique constraints decide races between concurrent votes.
        await self._votes.add(user_id=user_id, trip_id=trip_id, voted_on=day)

        if await self._trips.vote_count(trip_id) >= trip.min_votes:
            trip.status = TripStatus.activated
            log.info("trip_activated", trip_id=trip_id)

        await self._session.commit()
        return trip

    async def book(self, *, user_id: int, trip_id: int, seats: int, notes: str | None) -> Booking:
        trip = await self._trips.get(trip_id)
        if trip is None:
            raise NotFound("trip")
        if trip.status != TripStatus.activated:
            raise BadRequest("trip is not open for booking")

        remaining = trip.max_seats - await self._trips.booked_seats(trip_id)
        if seats > remaining:
            raise BadRequest("not enough seats left")

        booking = await self._bookings.create(
            user_id=user_id, trip_id=trip_id, seats=seats, notes=notes
        )
        await self._session.commit()
        return booking

    async def create_trip(self, *, agency_id: int, fields: dict[str, Any]) -> Trip:
        agency = await self._agencies.get(agency_id)
        if agency is None:
            raise NotFound("agency")
        if fields["end_date"] < fields["start_date"]:
            raise BadRequest("end_date must not be before start_date")
        if await self._trips.count_for_agency(agency_id) >= agency.trip_limit:
            raise BadRequest("trip limit reached")

        trip = await self._trips.create(agency_id=agency_id, fields=fields)
        await self._session.commit()
        return trip

    async def set_trip_status(self, *, agency_id: int, trip_id: int, status: TripStatus) -> Trip:
        trip = await self._trips.get_for_agency(trip_id, agency_id)
        if trip is None:
            raise NotFound("trip")
        trip.status = status
        await self._session.commit()
        return trip

    async def set_booking_status(
        self, *, agency_id: int, booking_id: int, status: BookingStatus
    ) -> Booking:
        booking = await self._bookings.get_for_agency(booking_id, agency_id)
        if booking is None:
            raise NotFound("booking")
        booking.status = status
        await self._notifications.create(
            user_id=booking.user_id,
            title="Booking update",
            message=f"Your booking #{booking.id} is now {status.value}.",
        )
        await self._session.commit()
        return booking

    async def review(
        self,
        *,
        user_id: int,
        kind: ReviewKind,
        rating: int,
        comment: str | None,
        trip_id: int | None,
        agency_id: int | None,
    ) -> Review:
        if kind == ReviewKind.trip:
            trip = await self._trips.get(trip_id) if trip_id is not None else None
            if trip is None:
                raise NotFound("trip")
            agency_id = trip.agency_id
        else:
            if agency_id is None or await self._agencies.get(agency_id) is None:
                raise NotFound("agency")
            trip_id = None

        review = await self._reviews.create(
            user_id=user_id,
            kind=kind,
            rating=rating,
            comment=comment,
            trip_id=trip_id,
            agency_id=agency_id,
        )
        await self._session.commit()
        return review

    async def user_stats(self, user_id: int) -> dict[str, Any]:
        today = self._today()
        return {
            "has_voted_today": await self._votes.has_voted_on(user_id, today),
            "total_votes": await self._votes.count_for_user(user_id),
            "upcoming_trips": await self._bookings.count_upcoming_confirmed(user_id, today),
            "new_notifications": await self._notifications.count_unread(user_id),
        }


# --- Module Notes -----------------------------------------------------------
# The pre-check in `vote` only gives a friendlier error; correctness under
# concurrency comes from the (user_id, voted_on) unique constraint.
