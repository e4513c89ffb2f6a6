"""
rolegate.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert the `Authorization: Bearer <token>` header into a typed `Principal`.
- Turn a declarative route policy into a reusable dependency (`require`).
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from rolegate.auth.guard import AccessPolicy, AuthorizationGuard
from rolegate.auth.models import Principal, Role


def guard_from_app(request: Request) -> AuthorizationGuard:
    # Built once in `rolegate.api.app.create_app` from the injected settings.
    return request.app.state.guard  # type: ignore[attr-defined]


def get_principal(
    request: Request,
    guard: AuthorizationGuard = Depends(guard_from_app),
) -> Principal:
    # Authn only: any valid token, any role.
    principal = guard.authenticate(request.headers.get("authorization"))
    request.state.principal = principal
    return principal


def require(*roles: Role | str, owner: str | None = None) -> Callable[..., Principal]:
    """
    Dependency factory for a route policy.

        @router.get("/users/{user_id}/profile")
        async def profile(principal: Principal = Depends(require(Role.user, Role.admin, owner="user_id"))):
    """

    policy = AccessPolicy.of(*roles, owner=owner)

    def _dep(
        request: Request,
        principal: Principal = Depends(get_principal),
        guard: AuthorizationGuard = Depends(guard_from_app),
    ) -> Principal:
        return guard.authorize(principal, policy, request.path_params)

    _dep.policy = policy  # type: ignore[attr-defined]
    return _dep


# --- Module Notes -----------------------------------------------------------
# Routes declare policies at the decorator/parameter level; no handler compares
# role strings inline.
