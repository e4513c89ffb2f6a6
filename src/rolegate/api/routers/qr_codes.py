"""
rolegate.api.routers.qr_codes

QR-code artifacts owned by a user (`/api/users/{user_id}/qr-codes`).

Only the stored artifact is managed here; rendering the image is left to
clients.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import db_session
from rolegate.api.serializers import qr_out
from rolegate.auth.deps import require
from rolegate.auth.models import Role
from rolegate.db.repositories.qr_codes import QrCodeRepo
from rolegate.errors import BadRequest, NotFound

router = APIRouter(
    prefix="/api/users/{user_id}/qr-codes",
    tags=["qr-codes"],
    dependencies=[Depends(require(Role.user, Role.admin, owner="user_id"))],
)

QrKind = Literal["url", "text", "email", "phone", "wifi"]


class QrCreate(BaseModel):
    label: str = Field(min_length=1, max_length=256)
    kind: QrKind = "url"
    content: str = Field(min_length=1, max_length=4000)
    style: dict[str, Any] = Field(default_factory=dict)


class QrUpdate(BaseModel):
    label: str | None = Field(default=None, min_length=1, max_length=256)
    kind: QrKind | None = None
    content: str | None = Field(default=None, min_length=1, max_length=4000)
    style: dict[str, Any] | None = None
    is_active: bool | None = None


@router.get("")
async def list_qr_codes(user_id: int, session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    items = await QrCodeRepo(session).list_for_user(user_id)
    return {"success": True, "qr_codes": [qr_out(q) for q in items]}


@router.post("", status_code=HTTP_201_CREATED)
async def create_qr_code(
    user_id: int,
    body: QrCreate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    qr = await QrCodeRepo(session).create(user_id=user_id, **body.model_dump())
    await session.commit()
    return {"success": True, "qr_code": qr_out(qr)}


@router.get("/{qr_id}")
async def get_qr_code(
    user_id: int, qr_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    qr = await QrCodeRepo(session).get_for_user(qr_id, user_id)
    if qr is None:
        raise NotFound("qr code")
    return {"success": True, "qr_code": qr_out(qr)}


@router.put("/{qr_id}")
async def update_qr_code(
    user_id: int,
    qr_id: int,
    body: QrUpdate,
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    fields = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not fields:
        raise BadRequest("no fields to update")
    repo = QrCodeRepo(session)
    qr = await repo.get_for_user(qr_id, user_id)
    if qr is None:
        raise NotFound("qr code")
    await repo.update(qr, fields)
    await session.commit()
    return {"success": True, "qr_code": qr_out(qr)}


@router.delete("/{qr_id}")
async def delete_qr_code(
    user_id: int, qr_id: int, session: AsyncSession = Depends(db_session)
) -> dict[str, Any]:
    if not await QrCodeRepo(session).delete_for_user(qr_id, user_id):
        raise NotFound("qr code")
    await session.commit()
    return {"success": True}
