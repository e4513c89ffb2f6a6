"""
rolegate.auth.models

Auth domain models.

Responsibilities:
- Define the closed set of roles.
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class Role(enum.StrEnum):
    user = "user"
    agency = "agency"
    admin = "admin"
    hospital = "hospital"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, as asserted by a verified token.
    """

    id: int
    role: Role
    display_name: str

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin

    def summary(self) -> dict[str, Any]:
        return {"id": self.id, "role": self.role.value, "name": self.display_name}


@dataclass(frozen=True, slots=True)
class IssuedToken:
    token: str
    principal: Principal
    expires_in: int  # seconds


# --- Module Notes -----------------------------------------------------------
# Principal ids are only unique within a role: user 7 and agency 7 are different
# principals. The guard admits a role through the access policy first and only
# then compares the path id, so an id check never stands in for a role check.
