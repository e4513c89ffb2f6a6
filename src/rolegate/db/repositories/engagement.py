"""
rolegate.db.repositories.engagement

Repositories for user-owned reviews and notifications.
"""

from __future__ import annotations

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Agency, Notification, Review, ReviewKind, Trip
from rolegate.db.repositories.base import flush_or_conflict


class ReviewRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: int,
        kind: ReviewKind,
        rating: int,
        comment: str | None,
        trip_id: int | None,
        agency_id: int | None,
    ) -> Review:
        review = Review(
            user_id=user_id,
            kind=kind,
            rating=rating,
            comment=comment,
            trip_id=trip_id,
            agency_id=agency_id,
        )
        self._session.add(review)
        await flush_or_conflict(self._session, "review target does not exist")
        return review

    async def list_for_user(self, user_id: int) -> list[tuple[Review, str | None, str | None]]:
        stmt = (
            select(Review, Trip.title, Agency.name)
            .outerjoin(Trip, Trip.id == Review.trip_id)
            .outerjoin(Agency, Agency.id == Review.agency_id)
            .where(Review.user_id == user_id)
            .order_by(desc(Review.created_at), desc(Review.id))
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]


class NotificationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, user_id: int, title: str, message: str) -> Notification:
        n = Notification(user_id=user_id, title=title, message=message, is_read=False)
        self._session.add(n)
        await self._session.flush()
        return n

    async def list_for_user(self, user_id: int) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def count_unread(self, user_id: int) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def mark_read(self, notification_id: int, user_id: int) -> bool:
        stmt = (
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
        )
        return bool((await self._session.execute(stmt)).rowcount)

    async def mark_all_read(self, user_id: int) -> int:
        stmt = update(Notification).where(Notification.user_id == user_id).values(is_read=True)
        return int((await self._session.execute(stmt)).rowcount or 0)

    async def delete(self, notification_id: int, user_id: int) -> bool:
        stmt = delete(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
        return bool((await self._session.execute(stmt)).rowcount)
