"""
rolegate.api.routers.hospitals

Vaccination reminder endpoints.

Responsibilities:
- Hospital profile, patients (register/search/read/update) and vaccine status
  changes, each scoped to the calling hospital.
- Hospital statistics and the upcoming-vaccine window.
- Public lookups: a mother's child schedule by phone, and the national table.
"""

from __future__ import annotations

from datetime import date
from math import ceil
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import db_session
from rolegate.api.serializers import hospital_out, patient_out, vaccine_out
from rolegate.auth.deps import require
from rolegate.auth.models import Principal, Role
from rolegate.db.models import VaccineStatus
from rolegate.db.repositories.patients import PatientRepo
from rolegate.db.repositories.principals import HospitalRepo
from rolegate.errors import BadRequest, NotFound
from rolegate.services.vaccination import NATIONAL_VACCINES, VaccinationService

router = APIRouter(prefix="/api", tags=["vaccination"])

hospital_only = require(Role.hospital)

Gender = Literal["male", "female"]


class PatientCreate(BaseModel):
    child_name: str = Field(min_length=1, max_length=256)
    mother_name: str = Field(min_length=1, max_length=256)
    mother_phone: str = Field(min_length=6, max_length=32)
    birth_date: date
    gender: Gender
    notes: str = Field(default="", max_length=4000)


class PatientUpdate(BaseModel):
    child_name: str | None = Field(default=None, min_length=1, max_length=256)
    mother_name: str | None = Field(default=None, min_length=1, max_length=256)
    mother_phone: str | None = Field(default=None, min_length=6, max_length=32)
    gender: Gender | None = None
    notes: str | None = Field(default=None, max_length=4000)


class VaccineUpdate(BaseModel):
    status: VaccineStatus
    completed_date: date | None = None
    notes: str | None = Field(default=None, max_length=4000)


@router.get("/hospitals/profile")
async def profile(
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    hospital = await HospitalRepo(session).get(principal.id)
    if hospital is None:
        raise NotFound("hospital")
    return {"success": True, "hospital": hospital_out(hospital)}


# -- patients -----------------------------------------------------------------------


@router.post("/patients", status_code=HTTP_201_CREATED)
async def register_patient(
    body: PatientCreate,
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    svc = VaccinationService(session)
    patient = await svc.register_patient(hospital_id=principal.id, fields=body.model_dump())
    _, vaccines = await svc.patient_with_vaccines(hospital_id=principal.id, patient_id=patient.id)
    return {
        "success": True,
        "patient": patient_out(patient),
        "vaccines": [vaccine_out(v) for v in vaccines],
    }


@router.get("/patients")
async def list_patients(
    search: str | None = Query(default=None, max_length=128),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    rows, total = await PatientRepo(session).page_for_hospital(
        principal.id, search=(search or "").strip() or None, page=page, limit=limit
    )
    return {
        "success": True,
        "patients": [patient_out(p) for p in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": ceil(total / limit),
        },
    }


@router.get("/patients/{patient_id}")
async def get_patient(
    patient_id: int,
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    patient, vaccines = await VaccinationService(session).patient_with_vaccines(
        hospital_id=principal.id, patient_id=patient_id
    )
    return {
        "success": True,
        "patient": patient_out(patient),
        "vaccines": [vaccine_out(v) for v in vaccines],
    }


@router.put("/patients/{patient_id}")
async def update_patient(
    patient_id: int,
    body: PatientUpdate,
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        raise BadRequest("no fields to update")
    patient = await VaccinationService(session).update_patient(
        hospital_id=principal.id, patient_id=patient_id, fields=fields
    )
    return {"success": True, "patient": patient_out(patient)}


@router.put("/vaccines/{vaccine_id}")
async def update_vaccine(
    vaccine_id: int,
    body: VaccineUpdate,
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    vaccine = await VaccinationService(session).set_vaccine_status(
        hospital_id=principal.id,
        vaccine_id=vaccine_id,
        status=body.status,
        completed_date=body.completed_date,
        notes=body.notes,
    )
    return {"success": True, "vaccine": vaccine_out(vaccine)}


# -- dashboard ----------------------------------------------------------------------


@router.get("/stats")
async def stats(
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    return {"success": True, "stats": await VaccinationService(session).hospital_stats(principal.id)}


@router.get("/upcoming-vaccines")
async def upcoming_vaccines(
    days: int = Query(default=7, ge=1, le=365),
    principal: Principal = Depends(hospital_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    rows = await VaccinationService(session).upcoming(principal.id, days=days)
    return {
        "success": True,
        "vaccines": [
            {
                **vaccine_out(v),
                "child_name": p.child_name,
                "mother_name": p.mother_name,
                "mother_phone": p.mother_phone,
            }
            for v, p in rows
        ],
    }


# -- public -------------------------------------------------------------------------


@router.get("/mother/{phone}")
async def mother_summary(phone: str, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    patient, hospital, vaccines, summary = await VaccinationService(session).mother_summary(
        phone.strip()
    )
    return {
        "success": True,
        "patient": {
            "child_name": patient.child_name,
            "mother_name": patient.mother_name,
            "birth_date": patient.birth_date.isoformat(),
            "gender": patient.gender,
        },
        "hospital": {"name": hospital.name, "phone": hospital.phone, "address": hospital.address},
        "vaccines": [vaccine_out(v) for v in vaccines],
        "stats": summary,
    }


@router.get("/national-vaccines")
async def national_vaccines() -> dict[str, Any]:
    return {
        "success": True,
        "vaccines": [{"code": v.code, "name": v.name, "months": v.months} for v in NATIONAL_VACCINES],
    }


# --- Module Notes -----------------------------------------------------------
# The mother lookup is unauthenticated: it exposes the child's schedule and the
# hospital's contact details, never patient ids or other mothers' data.
