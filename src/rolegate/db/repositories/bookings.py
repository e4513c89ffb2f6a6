from __future__ import annotations

from datetime import date

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Agency, Booking, BookingStatus, Trip, User
from rolegate.db.repositories.base import flush_or_conflict


class BookingRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: int, trip_id: int, seats: int, notes: str | None) -> Booking:
        booking = Booking(
            user_id=user_id,
            trip_id=trip_id,
            seats=seats,
            notes=notes,
            status=BookingStatus.pending,
        )
        self._session.add(booking)
        await flush_or_conflict(self._session, "booking could not be created")
        return booking

    async def get_for_agency(self, booking_id: int, agency_id: int) -> Booking | None:
        stmt = (
            select(Booking)
            .join(Trip, Trip.id == Booking.trip_id)
            .where(Booking.id == booking_id, Trip.agency_id == agency_id)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_pending_for_agency(self, agency_id: int) -> list[tuple[Booking, User, str]]:
        stmt = (
            select(Booking, User, Trip.title)
            .join(User, User.id == Booking.user_id)
            .join(Trip, Trip.id == Booking.trip_id)
            .where(Trip.agency_id == agency_id, Booking.status == BookingStatus.pending)
            .order_by(desc(Booking.created_at), desc(Booking.id))
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]

    async def list_trips_for_user(self, user_id: int) -> list[tuple[Trip, BookingStatus, str]]:
        stmt = (
            select(Trip, Booking.status, Agency.name)
            .join(Booking, Booking.trip_id == Trip.id)
            .join(Agency, Agency.id == Trip.agency_id)
            .where(Booking.user_id == user_id)
            .order_by(desc(Trip.start_date))
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]

    async def count_upcoming_confirmed(self, user_id: int, today: date) -> int:
        stmt = (
            select(func.count(Booking.id))
            .join(Trip, Trip.id == Booking.trip_id)
            .where(
                Booking.user_id == user_id,
                Booking.status == BookingStatus.confirmed,
                Trip.end_date > today,
            )
        )
        return int((await self._session.execute(stmt)).scalar_one())


# --- Module Notes -----------------------------------------------------------
# Bookings are owned twice: by the user who made them and, through the trip,
# by the agency that runs the trip. Agency-side lookups always join on Trip.
