"""
rolegate.db.repositories.patients

Repositories for the vaccination backend.

Responsibilities:
- Patients scoped to their hospital (create, search/page, update, lookups).
- Vaccines: bulk schedule insert, per-patient listing, ownership-resolving
  lookup, upcoming window, and hospital-level counters.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Hospital, Patient, Vaccine, VaccineStatus
from rolegate.db.repositories.base import flush_or_conflict


class PatientRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, *, hospital_id: int, fields: dict[str, Any]) -> Patient:
        patient = Patient(hospital_id=hospital_id, is_active=True, **fields)
        self._session.add(patient)
        await flush_or_conflict(self._session, "mother phone already registered")
        return patient

    async def get_for_hospital(self, patient_id: int, hospital_id: int) -> Patient | None:
        stmt = select(Patient).where(
            Patient.id == patient_id,
            Patient.hospital_id == hospital_id,
            Patient.is_active.is_(True),
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def page_for_hospital(
        self,
        hospital_id: int,
        *,
        search: str | None,
        page: int,
        limit: int,
    ) -> tuple[list[Patient], int]:
        where = [Patient.hospital_id == hospital_id, Patient.is_active.is_(True)]
        if search:
            needle = search.lower()
            where.append(
                or_(
                    func.lower(Patient.child_name).contains(needle, autoescape=True),
                    func.lower(Patient.mother_name).contains(needle, autoescape=True),
                    Patient.mother_phone.contains(search, autoescape=True),
                )
            )
        stmt = (
            select(Patient)
            .where(*where)
            .order_by(desc(Patient.created_at), desc(Patient.id))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        total_stmt = select(func.count(Patient.id)).where(*where)
        rows = list((await self._session.execute(stmt)).scalars().all())
        total = int((await self._session.execute(total_stmt)).scalar_one())
        return rows, total

    async def update(self, patient: Patient, fields: dict[str, Any]) -> Patient:
        for name, value in fields.items():
            setattr(patient, name, value)
        await flush_or_conflict(self._session, "mother phone already registered")
        return patient

    async def get_by_mother_phone(self, phone: str) -> tuple[Patient, Hospital] | None:
        stmt = (
            select(Patient, Hospital)
            .join(Hospital, Hospital.id == Patient.hospital_id)
            .where(Patient.mother_phone == phone, Patient.is_active.is_(True))
        )
        row = (await self._session.execute(stmt)).first()
        return (row[0], row[1]) if row is not None else None

    async def count_for_hospital(self, hospital_id: int) -> int:
        stmt = select(func.count(Patient.id)).where(
            Patient.hospital_id == hospital_id, Patient.is_active.is_(True)
        )
        return int((await self._session.execute(stmt)).scalar_one())


class VaccineRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add_schedule(self, patient_id: int, entries: list[dict[str, Any]]) -> list[Vaccine]:
        vaccines = [Vaccine(patient_id=patient_id, **entry) for entry in entries]
        self._session.add_all(vaccines)
        await self._session.flush()
        return vaccines

    async def list_for_patient(self, patient_id: int) -> list[Vaccine]:
        stmt = (
            select(Vaccine)
            .where(Vaccine.patient_id == patient_id)
            .order_by(Vaccine.due_date, Vaccine.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get_with_hospital(self, vaccine_id: int) -> tuple[Vaccine, int] | None:
        # Vaccines are owned transitively: vaccine -> patient -> hospital.
        stmt = (
            select(Vaccine, Patient.hospital_id)
            .join(Patient, Patient.id == Vaccine.patient_id)
            .where(Vaccine.id == vaccine_id, Patient.is_active.is_(True))
        )
        row = (await self._session.execute(stmt)).first()
        return (row[0], int(row[1])) if row is not None else None

    def _for_hospital(self, hospital_id: int):
        return and_(
            Vaccine.patient_id == Patient.id,
            Patient.hospital_id == hospital_id,
            Patient.is_active.is_(True),
        )

    async def upcoming_for_hospital(
        self, hospital_id: int, *, start: date, end: date
    ) -> list[tuple[Vaccine, Patient]]:
        stmt = (
            select(Vaccine, Patient)
            .join(Patient, self._for_hospital(hospital_id))
            .where(
                Vaccine.status == VaccineStatus.pending,
                Vaccine.due_date >= start,
                Vaccine.due_date <= end,
            )
            .order_by(Vaccine.due_date, Vaccine.id)
        )
        return [tuple(r) for r in (await self._session.execute(stmt)).all()]

    async def counts_for_hospital(
        self, hospital_id: int, *, start: date, end: date
    ) -> dict[str, int]:
        pending = Vaccine.status == VaccineStatus.pending
        stmt = select(
            func.count(Vaccine.id),
            func.count(Vaccine.id).filter(Vaccine.status == VaccineStatus.completed),
            func.count(Vaccine.id).filter(pending),
            func.count(Vaccine.id).filter(
                pending, Vaccine.due_date >= start, Vaccine.due_date <= end
            ),
        ).select_from(Vaccine).join(Patient, self._for_hospital(hospital_id))
        total, completed, pending_count, upcoming = (await self._session.execute(stmt)).one()
        return {
            "total": int(total),
            "completed": int(completed),
            "pending": int(pending_count),
            "upcoming": int(upcoming),
        }


# --- Module Notes -----------------------------------------------------------
# Search terms are bound parameters with LIKE wildcards escaped (autoescape=True).
