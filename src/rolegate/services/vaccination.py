"""
rolegate.services.vaccination

Vaccination reminder rules.

Responsibilities:
- Hold the national immunization table and derive a child's schedule from the
  birth date.
- Register patients together with their generated schedule.
- Vaccine status transitions with ownership resolved through the patient.
- Hospital statistics, upcoming-vaccine window, and the public mother summary.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import Hospital, Patient, Vaccine, VaccineStatus
from rolegate.db.repositories.patients import PatientRepo, VaccineRepo
from rolegate.errors import BadRequest, NotFound
from rolegate.services.clock import utc_today


@dataclass(frozen=True, slots=True)
class NationalVaccine:
    code: str
    name: str
    months: int


NATIONAL_VACCINES: tuple[NationalVaccine, ...] = (
    NationalVaccine("DTP1", "Diphtheria, tetanus and pertussis (dose 1)", 2),
    NationalVaccine("OPV1", "Oral polio (dose 1)", 2),
    NationalVaccine("HIB1", "Haemophilus influenzae type b (dose 1)", 2),
    NationalVaccine("DTP2", "Diphtheria, tetanus and pertussis (dose 2)", 4),
    NationalVaccine("OPV2", "Oral polio (dose 2)", 4),
    NationalVaccine("HIB2", "Haemophilus influenzae type b (dose 2)", 4),
    NationalVaccine("DTP3", "Diphtheria, tetanus and pertussis (dose 3)", 6),
    NationalVaccine("OPV3", "Oral polio (dose 3)", 6),
    NationalVaccine("HIB3", "Haemophilus influenzae type b (dose 3)", 6),
    NationalVaccine("MMR1", "Measles, mumps and rubella (dose 1)", 9),
    NationalVaccine("DTP4", "Diphtheria, tetanus and pertussis (dose 4)", 18),
    NationalVaccine("OPV4", "Oral polio (dose 4)", 18),
    NationalVaccine("MMR2", "Measles, mumps and rubella (dose 2)", 24),
)


def generate_schedule(birth_date: date) -> list[dict[str, Any]]:
    # relativedelta clamps to month end: born Dec 31, due at 2 months on Feb 28 (or 29).
    return [
        {
            "code": v.code,
            "name": v.name,
            "due_date": birth_date + relativedelta(months=v.months),
            "status": VaccineStatus.pending,
            "notified": False,
        }
        for v in NATIONAL_VACCINES
    ]


def completion_rate(completed: int, total: int) -> int:
    return round(completed * 100 / total) if total else 0


class VaccinationService:
    def __init__(self, session: AsyncSession, *, today: Callable[[], date] = utc_today) -> None:
        self._session = session
        self._today = today

        self._patients = PatientRepo(session)
        self._vaccines = VaccineRepo(session)

    async def register_patient(self, *, hospital_id: int, fields: dict[str, Any]) -> Patient:
        if fields["birth_date"] > self._today():
            raise BadRequest("birth_date must not be in the future")
        patient = await self._patients.create(hospital_id=hospital_id, fields=fields)
        await self._vaccines.add_schedule(patient.id, generate_schedule(patient.birth_date))
        await self._session.commit()
        return patient

    async def patient_with_vaccines(
        self, *, hospital_id: int, patient_id: int
    ) -> tuple[Patient, list[Vaccine]]:
        patient = await self._patients.get_for_hospital(patient_id, hospital_id)
        if patient is None:
            raise NotFound("patient")
        return patient, await self._vaccines.list_for_patient(patient.id)

    async def update_patient(
        self, *, hospital_id: int, patient_id: int, fields: dict[str, Any]
    ) -> Patient:
        patient = await self._patients.get_for_hospital(patient_id, hospital_id)
        if patient is None:
            raise NotFound("patient")
        await self._patients.update(patient, fields)
        await self._session.commit()
        return patient

    async def set_vaccine_status(
        self,
        *,
        hospital_id: int,
        vaccine_id: int,
        status: VaccineStatus,
        completed_date: date | None,
        notes: str | None,
    ) -> Vaccine:
        found = await self._vaccines.get_with_hospital(vaccine_id)
        # Another hospital's vaccine answers exactly like a missing one.
        if found is None or found[1] != hospital_id:
            raise NotFound("vaccine")
        vaccine = found[0]
        vaccine.status = status
        vaccine.completed_date = (
            (completed_date or self._today()) if status == VaccineStatus.completed else None
        )
        vaccine.notes = notes or ""
        await self._session.commit()
        return vaccine

    async def hospital_stats(self, hospital_id: int) -> dict[str, int]:
        today = self._today()
        counts = await self._vaccines.counts_for_hospital(
            hospital_id, start=today, end=today + timedelta(days=7)
        )
        return {
            "total_patients": await self._patients.count_for_hospital(hospital_id),
            "total_vaccines": counts["total"],
            "completed_vaccines": counts["completed"],
            "pending_vaccines": counts["pending"],
            "upcoming_vaccines": counts["upcoming"],
            "completion_rate": completion_rate(counts["completed"], counts["total"]),
        }

    async def upcoming(self, hospital_id: int, *, days: int) -> list[tuple[Vaccine, Patient]]:
        today = self._today()
        return await self._vaccines.upcoming_for_hospital(
            hospital_id, start=today, end=today + timedelta(days=days)
        )

    async def mother_summary(
        self, phone: str
    ) -> tuple[Patient, Hospital, list[Vaccine], dict[str, Any]]:
        found = await self._patients.get_by_mother_phone(phone)
        if found is None:
            raise NotFound("patient")
        patient, hospital = found
        vaccines = await self._vaccines.list_for_patient(patient.id)

        completed = sum(1 for v in vaccines if v.status == VaccineStatus.completed)
        pending = [v for v in vaccines if v.status == VaccineStatus.pending]
        stats = {
            "total_vaccines": len(vaccines),
            "completed_vaccines": completed,
            "pending_vaccines": len(pending),
            "completion_rate": completion_rate(completed, len(vaccines)),
            "next_vaccine_id": pending[0].id if pending else None,
        }
        return patient, hospital, vaccines, stats
