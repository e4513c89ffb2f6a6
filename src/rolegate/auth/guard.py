"""
rolegate.auth.guard

Authorization guard: one evaluator for every route's access policy.

Responsibilities:
- Extract the bearer token from an `Authorization` header.
- Verify it through the token codec.
- Apply the route's declarative `AccessPolicy` (allowed roles + optional
  ownership of a path parameter).

Per-request states:

    NoToken ──extract──> TokenInvalid            -> TokenMissing / TokenInvalid (401)
                     └─> TokenValid(principal) ──role──> Forbidden (403)
                                               └─owner─> Forbidden (403)
                                               └───────> principal

Admins bypass the ownership check, never the role check: a route that admins
may use lists `Role.admin` among its roles.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from rolegate.auth.models import Principal, Role
from rolegate.auth.tokens import TokenCodec
from rolegate.errors import Forbidden, TokenInvalid, TokenMissing


@dataclass(frozen=True, slots=True)
class AccessPolicy:
    roles: frozenset[Role]
    # Name of the path parameter carrying the owning principal's id, if any.
    owner_param: str | None = None

    @classmethod
    def of(cls, *roles: Role | str, owner: str | None = None) -> AccessPolicy:
        return cls(roles=frozenset(Role(r) for r in roles), owner_param=owner)


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    credentials = credentials.strip()
    return credentials or None


class AuthorizationGuard:
    def __init__(self, codec: TokenCodec) -> None:
        self._codec = codec

    def authenticate(self, authorization: str | None) -> Principal:
        token = bearer_token(authorization)
        if token is None:
            raise TokenMissing()
        principal = self._codec.verify(token)
        if principal is None:
            raise TokenInvalid()
        return principal

    def authorize(
        self,
        principal: Principal,
        policy: AccessPolicy,
        path_params: Mapping[str, Any] | None = None,
    ) -> Principal:
        if principal.role not in policy.roles:
            raise Forbidden(context={"role": principal.role.value, "allowed": _names(policy.roles)})

        if policy.owner_param is not None and not principal.is_admin:
            raw = (path_params or {}).get(policy.owner_param)
            if not _same_id(raw, principal.id):
                raise Forbidden(context={"owner_param": policy.owner_param})
        return principal

    def check(
        self,
        authorization: str | None,
        policy: AccessPolicy,
        path_params: Mapping[str, Any] | None = None,
    ) -> Principal:
        return self.authorize(self.authenticate(authorization), policy, path_params)


def _same_id(raw: Any, principal_id: int) -> bool:
    try:
        return int(str(raw)) == principal_id
    except ValueError:
        return False


def _names(roles: Iterable[Role]) -> list[str]:
    return sorted(r.value for r in roles)


# --- Module Notes -----------------------------------------------------------
# Ownership of resources addressed by their *own* id (trip, booking, patient,
# vaccine, QR code) is enforced by owner-scoped repository queries instead, and a
# miss there is a 404 so non-owners cannot learn which ids exist.
