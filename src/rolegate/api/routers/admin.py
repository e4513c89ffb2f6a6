"""
rolegate.api.routers.admin

Administrator endpoints (role `admin` only).

Responsibilities:
- Dashboard counters.
- Agency provisioning: create, edit, activate/deactivate, delete, and
  regenerate the access code (returned once, never stored in clear).
- User listing and activation.
- Audit trail lookup for one principal.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import auth_service, db_session, sessionmaker_from_app
from rolegate.api.serializers import agency_out, user_out
from rolegate.auth.deps import require
from rolegate.auth.models import Principal, Role
from rolegate.auth.service import AuthenticationService
from rolegate.db.models import AgencyStatus
from rolegate.db.repositories.audit import AuditRepo
from rolegate.db.repositories.principals import AgencyRepo, UserRepo
from rolegate.errors import BadRequest, NotFound
from rolegate.services.dashboard import admin_stats

admin_only = require(Role.admin)

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(admin_only)])


class AgencyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    state: str = Field(min_length=1, max_length=128)
    city: str = Field(min_length=1, max_length=128)
    phone: str = Field(min_length=6, max_length=32)
    description: str | None = Field(default=None, max_length=4000)
    trip_limit: int = Field(default=100, ge=1, le=100_000)


class AgencyAdminUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=256)
    state: str | None = Field(default=None, min_length=1, max_length=128)
    city: str | None = Field(default=None, min_length=1, max_length=128)
    phone: str | None = Field(default=None, min_length=6, max_length=32)
    description: str | None = Field(default=None, max_length=4000)
    trip_limit: int | None = Field(default=None, ge=1, le=100_000)


class AgencyStatusUpdate(BaseModel):
    status: AgencyStatus


class UserStatusUpdate(BaseModel):
    is_active: bool


@router.get("/stats")
async def stats(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> dict[str, Any]:
    return {"success": True, "stats": await admin_stats(session_factory)}


# -- agencies -----------------------------------------------------------------------


@router.get("/agencies")
async def list_agencies(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await AgencyRepo(session).list_with_counts()
    return {
        "success": True,
        "agencies": [
            {**agency_out(agency), "trips": trips, "votes": votes}
            for agency, trips, votes in rows
        ],
    }


@router.post("/agencies", status_code=HTTP_201_CREATED)
async def create_agency(
    body: AgencyCreate,
    principal: Principal = Depends(admin_only),
    svc: AuthenticationService = Depends(auth_service),
) -> dict[str, Any]:
    agency, code = await svc.provision_agency(actor=principal, **body.model_dump())
    return {"success": True, "agency": agency_out(agency), "access_code": code}


@router.put("/agencies/{agency_id}")
async def update_agency(
    agency_id: int,
    body: AgencyAdminUpdate,
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


@router.put("/agencies/{agency_id}/status")
async def set_agency_status(
    agency_id: int,
    body: AgencyStatusUpdate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    agency = await AgencyRepo(session).update(agency_id, {"status": body.status})
    if agency is None:
        raise NotFound("agency")
    await session.commit()
    return {"success": True, "agency": agency_out(agency)}


@router.post("/agencies/{agency_id}/regenerate-code")
async def regenerate_code(
    agency_id: int,
    principal: Principal = Depends(admin_only),
    svc: AuthenticationService = Depends(auth_service),
) -> dict[str, Any]:
    code = await svc.regenerate_agency_code(actor=principal, agency_id=agency_id)
    return {"success": True, "access_code": code}


@router.delete("/agencies/{agency_id}")
async def delete_agency(
    agency_id: int,
    principal: Principal = Depends(admin_only),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    if not await AgencyRepo(session).delete(agency_id):
        raise NotFound("agency")
    await AuditRepo(session).add(
        principal_id=principal.id,
        role=principal.role.value,
        action="agency_deleted",
        details={"agency_id": agency_id},
    )
    await session.commit()
    return {"success": True}


# -- users --------------------------------------------------------------------------


@router.get("/users")
async def list_users(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    rows = await UserRepo(session).list_with_counts()
    return {
        "success": True,
        "users": [
            {**user_out(user), "bookings": bookings, "votes": votes}
            for user, bookings, votes in rows
        ],
    }


@router.put("/users/{user_id}/status")
async def set_user_status(
    user_id: int,
    body: UserStatusUpdate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    user = await UserRepo(session).set_active(user_id, body.is_active)
    if user is None:
        raise NotFound("user")
    await session.commit()
    return {"success": True, "user": user_out(user)}


# -- audit --------------------------------------------------------------------------


@router.get("/audit")
async def audit_trail(
    role: Role,
    principal_id: int,
    limit: int = Query(default=100, ge=1, le=500),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    events = await AuditRepo(session).list_for_principal(
        role=role.value, principal_id=principal_id, limit=limit
    )
    return {
        "success": True,
        "events": [
            {
                "id": e.id,
                "action": e.action,
                "ip": e.ip,
                "user_agent": e.user_agent,
                "details": e.details,
                "created_at": e.created_at.isoformat(),
            }
            for e in events
        ],
    }


# --- Module Notes -----------------------------------------------------------
# `admin_only` is the same callable in the router dependencies and in handler
# parameters, so FastAPI resolves it once per request.
