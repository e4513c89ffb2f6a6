"""
rolegate.services.dashboard

Admin dashboard counters.

The four counts are independent, so each runs on its own short-lived session
and they are awaited together.
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from rolegate.db.models import Agency, AgencyStatus, Booking, BookingStatus, Trip, TripStatus, User


async def _count(session_factory: async_sessionmaker[AsyncSession], stmt: Any) -> int:
    async with session_factory() as session:
        return int((await session.execute(stmt)).scalar_one())


async def admin_stats(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    users, agencies, trips, bookings = await asyncio.gather(
        _count(session_factory, select(func.count(User.id)).where(User.is_active.is_(True))),
        _count(
            session_factory,
            select(func.count(Agency.id)).where(Agency.status == AgencyStatus.active),
        ),
        _count(session_factory, select(func.count(Trip.id)).where(Trip.status == TripStatus.voting)),
        _count(
            session_factory,
            select(func.count(Booking.id)).where(Booking.status == BookingStatus.pending),
        ),
    )
    return {"users": users, "agencies": agencies, "voting_trips": trips, "pending_bookings": bookings}
