"""
rolegate.db.repositories.audit

Repository for `AuditEvent` entities.

Responsibilities:
- Append audit events (logins, admin provisioning actions).
- Query the audit trail of one principal.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.db.models import AuditEvent


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        principal_id: int,
        role: str,
        action: str,
        ip: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        # Audit events are append-only (no update/delete) in normal operation.
        ev = AuditEvent(
            principal_id=principal_id,
            role=role,
            action=action,
            ip=ip,
            user_agent=user_agent[:512] if user_agent else None,
            details=details or {},
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_for_principal(
        self, *, role: str, principal_id: int, limit: int = 200
    ) -> list[AuditEvent]:
        # Newest-first for UI consumption.
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.role == role, AuditEvent.principal_id == principal_id)
            .order_by(desc(AuditEvent.created_at), desc(AuditEvent.id))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Callers write audit events inside a SAVEPOINT so a failed insert never undoes
# the primary operation (see `auth.service.AuthenticationService._record_login`).
