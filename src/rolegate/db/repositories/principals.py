"""
rolegate.db.repositories.principals

Credential store: repositories for the four principal tables.

Responsibilities:
- Lookup by identifier (phone/email/access-code digest) and by id.
- Create principals (uniqueness decided by the database).
- Profile/status updates, agency delete, and `last_login` bookkeeping.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Admin, Agency, AgencyStatus, Booking, Hospital, Trip, User, Vote
from rolegate.db.repositories.base import flush_or_conflict


class _PrincipalRepo:
    model: Any

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, principal_id: int) -> Any | None:
        return await self._session.get(self.model, principal_id)

    async def touch_last_login(self, principal_id: int) -> None:
        stmt = (
            update(self.model)
            .where(self.model.id == principal_id)
            .values(last_login=datetime.utcnow())
        )
        await self._session.execute(stmt)

    async def _apply(self, principal_id: int, fields: dict[str, Any]) -> Any | None:
        row = await self._session.get(self.model, principal_id, with_for_update=True)
        if row is None:
            return None
        for name, value in fields.items():
            setattr(row, name, value)
        return row


class UserRepo(_PrincipalRepo):
    model = User

    async def create(
        self,
        *,
        name: str,
        last_name: str,
        phone: str,
        email: str | None,
        state: str,
        password_hash: str,
    ) -> User:
        user = User(
            name=name,
            last_name=last_name,
            phone=phone,
            email=email,
            state=state,
            password_hash=password_hash,
            is_active=True,
        )
        self._session.add(user)
        await flush_or_conflict(self._session, "user already exists")
        return user

    async def get_by_identifier(self, identifier: str) -> User | None:
        # Users log in with either their phone number or their e-mail address.
        # Phones cannot hold "@", so the two never compete for one identifier.
        column = User.email if "@" in identifier else User.phone
        stmt = select(User).where(column == identifier)
        return (await self._session.execute(stmt)).scalars().one_or_none()

    async def update_profile(self, user_id: int, fields: dict[str, Any]) -> User | None:
        user = await self._apply(user_id, fields)
        if user is not None:
            await flush_or_conflict(self._session, "phone or email already in use")
        return user

    async def set_active(self, user_id: int, is_active: bool) -> User | None:
        return await self._apply(user_id, {"is_active": is_active})

    async def list_with_counts(self) -> list[tuple[User, int, int]]:
        bookings = (
            select(func.count(Booking.id)).where(Booking.user_id == User.id).scalar_subquery()
        )
        votes = select(func.count(Vote.id)).where(Vote.user_id == User.id).scalar_subquery()
        stmt = select(User, bookings, votes).order_by(desc(User.created_at), desc(User.id))
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]


class AgencyRepo(_PrincipalRepo):
    model = Agency

    async def create(
        self,
        *,
        name: str,
        code_hash: str,
        state: str,
        city: str,
        phone: str,
        description: str | None,
        trip_limit: int,
    ) -> Agency:
        agency = Agency(
            name=name,
            code_hash=code_hash,
            state=state,
            city=city,
            phone=phone,
            description=description,
            trip_limit=trip_limit,
            status=AgencyStatus.active,
        )
        self._session.add(agency)
        await flush_or_conflict(self._session, "agency already exists")
        return agency

    async def get_active_by_code_hash(self, code_hash: str) -> Agency | None:
        stmt = select(Agency).where(
            Agency.code_hash == code_hash, Agency.status == AgencyStatus.active
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def update(self, agency_id: int, fields: dict[str, Any]) -> Agency | None:
        agency = await self._apply(agency_id, fields)
        if agency is not None:
            await flush_or_conflict(self._session, "agency update conflicts with existing data")
        return agency

    async def set_code_hash(self, agency_id: int, code_hash: str) -> Agency | None:
        return await self.update(agency_id, {"code_hash": code_hash})

    async def delete(self, agency_id: int) -> bool:
        # Trips, and through them votes and bookings, go with the agency (ON DELETE CASCADE).
        result = await self._session.execute(delete(Agency).where(Agency.id == agency_id))
        return bool(result.rowcount)

    async def list_with_counts(self) -> list[tuple[Agency, int, int]]:
        trips = select(func.count(Trip.id)).where(Trip.agency_id == Agency.id).scalar_subquery()
        votes = (
            select(func.count(Vote.id))
            .join(Trip, Trip.id == Vote.trip_id)
            .where(Trip.agency_id == Agency.id)
            .scalar_subquery()
        )
        stmt = select(Agency, trips, votes).order_by(desc(Agency.created_at), desc(Agency.id))
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]


class AdminRepo(_PrincipalRepo):
    model = Admin

    async def create(self, *, name: str, email: str, password_hash: str) -> Admin:
        admin = Admin(name=name, email=email, password_hash=password_hash, is_active=True)
        self._session.add(admin)
        await flush_or_conflict(self._session, "admin already exists")
        return admin

    async def get_by_email(self, email: str) -> Admin | None:
        stmt = select(Admin).where(Admin.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()


class HospitalRepo(_PrincipalRepo):
    model = Hospital

    async def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        phone: str,
        address: str,
    ) -> Hospital:
        hospital = Hospital(
            name=name,
            email=email,
            password_hash=password_hash,
            phone=phone,
            address=address,
            is_active=True,
        )
        self._session.add(hospital)
        await flush_or_conflict(self._session, "email already in use")
        return hospital

    async def get_by_email(self, email: str) -> Hospital | None:
        stmt = select(Hospital).where(Hospital.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()


# --- Module Notes -----------------------------------------------------------
# Nothing here checks "does this identifier exist?" before inserting: two
# concurrent registrations race on the unique index and the loser gets Conflict.
