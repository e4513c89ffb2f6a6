"""
rolegate.auth.tokens

JWT issuing and validation (the token codec).

Responsibilities:
- Issue signed, time-limited tokens binding principal id, role and display name.
- Verify tokens statelessly; every failure collapses to `None`.

Note:
- HS256 with a process-wide secret; there is no server-side session table and
  no revocation list, so a token stays valid until `exp`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from rolegate.auth.models import Principal, Role
from rolegate.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer are enforced during decoding.
    alg: str
    issuer: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(alg=settings.jwt_alg, issuer=settings.jwt_issuer, secret=settings.jwt_secret)


class TokenCodec:
    def __init__(self, cfg: JwtConfig) -> None:
        self._cfg = cfg

    def issue(
        self,
        *,
        principal_id: int,
        role: Role | str,
        display_name: str,
        ttl: timedelta,
    ) -> str:
        now = datetime.now(tz=UTC)
        payload: dict[str, Any] = {
            "iss": self._cfg.issuer,
            "sub": str(principal_id),
            "role": str(role),
            "name": display_name,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self._cfg.secret, algorithm=self._cfg.alg)

    def verify(self, token: str) -> Principal | None:
        """
        Return the asserted principal, or None for malformed, tampered, foreign
        or expired tokens. A token is already expired at its `exp` second.
        """

        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                issuer=self._cfg.issuer,
                options={"require": ["exp", "iat", "iss", "sub"]},
            )
        except InvalidTokenError:
            return None

        try:
            principal_id = int(payload["sub"])
            role = Role(payload.get("role"))
        except (TypeError, ValueError):
            return None
        name = payload.get("name")
        if not isinstance(name, str):
            return None
        return Principal(id=principal_id, role=role, display_name=name)


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `auth.service.AuthenticationService`; verification by
# `auth.guard.AuthorizationGuard`. Neither touches the database.
