from __future__ import annotations

from typing import Any

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import QrCode
from rolegate.db.repositories.base import flush_or_conflict


class QrCodeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        user_id: int,
        label: str,
        kind: str,
        content: str,
        style: dict[str, Any],
    ) -> QrCode:
        qr = QrCode(user_id=user_id, label=label, kind=kind, content=content, style=style)
        self._session.add(qr)
        await flush_or_conflict(self._session, "qr code could not be created")
        return qr

    async def get_for_user(self, qr_id: int, user_id: int) -> QrCode | None:
        stmt = select(QrCode).where(QrCode.id == qr_id, QrCode.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> list[QrCode]:
        stmt = (
            select(QrCode)
            .where(QrCode.user_id == user_id)
            .order_by(desc(QrCode.created_at), desc(QrCode.id))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def update(self, qr: QrCode, fields: dict[str, Any]) -> QrCode:
        for name, value in fields.items():
            setattr(qr, name, value)
        await flush_or_conflict(self._session, "qr code could not be updated")
        return qr

    async def delete_for_user(self, qr_id: int, user_id: int) -> bool:
        stmt = delete(QrCode).where(QrCode.id == qr_id, QrCode.user_id == user_id)
        return bool((await self._session.execute(stmt)).rowcount)
