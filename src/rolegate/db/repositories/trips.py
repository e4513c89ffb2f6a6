from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Agency, Booking, BookingStatus, Trip, TripStatus, Vote
from rolegate.db.repositories.base import flush_or_conflict


class TripRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, agency_id: int, fields: dict[str, Any]) -> Trip:
        trip = Trip(agency_id=agency_id, status=TripStatus.voting, **fields)
        self._session.add(trip)
        await flush_or_conflict(self._session, "trip could not be created")
        return trip

    async def get(self, trip_id: int) -> Trip | None:
        return await self._session.get(Trip, trip_id)

    async def get_for_agency(self, trip_id: int, agency_id: int) -> Trip | None:
        # Scoped lookup: another agency's trip is indistinguishable from a missing one.
        stmt = select(Trip).where(Trip.id == trip_id, Trip.agency_id == agency_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def count_for_agency(self, agency_id: int) -> int:
        stmt = select(func.count(Trip.id)).where(Trip.agency_id == agency_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def vote_count(self, trip_id: int) -> int:
        stmt = select(func.count(Vote.id)).where(Vote.trip_id == trip_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def booked_seats(self, trip_id: int) -> int:
        stmt = select(func.coalesce(func.sum(Booking.seats), 0)).where(
            Booking.trip_id == trip_id,
            Booking.status.in_([BookingStatus.pending, BookingStatus.confirmed]),
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def list_voting(self) -> list[tuple[Trip, str, int]]:
        votes = select(func.count(Vote.id)).where(Vote.trip_id == Trip.id).scalar_subquery()
        stmt = (
            select(Trip, Agency.name, votes)
            .join(Agency, Agency.id == Trip.agency_id)
            .where(Trip.status == TripStatus.voting)
            .order_by(desc(Trip.created_at), desc(Trip.id))
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]

    async def list_for_agency(self, agency_id: int) -> list[tuple[Trip, int, int]]:
        votes = select(func.count(Vote.id)).where(Vote.trip_id == Trip.id).scalar_subquery()
        booked = (
            select(func.coalesce(func.sum(Booking.seats), 0))
            .where(Booking.trip_id == Trip.id, Booking.status == BookingStatus.confirmed)
            .scalar_subquery()
        )
        stmt = (
            select(Trip, votes, booked)
            .where(Trip.agency_id == agency_id)
            .order_by(desc(Trip.created_at), desc(Trip.id))
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]


class VoteRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, *, user_id: int, trip_id: int, voted_on: date) -> Vote:
        vote = Vote(user_id=user_id, trip_id=trip_id, voted_on=voted_on)
        self._session.add(vote)
        # (user_id, voted_on) and (user_id, trip_id) are unique: a second vote loses here.
        await flush_or_conflict(self._session, "vote already recorded")
        return vote

    async def has_voted_on(self, user_id: int, day: date) -> bool:
        stmt = select(func.count(Vote.id)).where(Vote.user_id == user_id, Vote.voted_on == day)
        return int((await self._session.execute(stmt)).scalar_one()) > 0

    async def count_for_user(self, user_id: int) -> int:
        stmt = select(func.count(Vote.id)).where(Vote.user_id == user_id)
        return int((await self._session.execute(stmt)).scalar_one())
