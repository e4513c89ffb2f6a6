"""
rolegate.errors

Application error taxonomy.

Responsibilities:
- Define the exceptions raised by auth, guard, services and repositories.
- Carry the HTTP status and the client-safe message for each error kind.

Every class here is turned into `{"success": false, "error": <message>}` by the
handlers in `rolegate.api.errors`; nothing else should build error bodies.
"""

from __future__ import annotations

from typing import Any


class RoleGateError(Exception):
    """
    Base class for all errors that are recovered at the request boundary.
    """

    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: str | None = None, *, context: dict[str, Any] | None = None):
        self.message = message or self.default_message
        # Context is logged server-side only, never returned to the caller.
        self.context = context or {}
        super().__init__(self.message)


class BadRequest(RoleGateError):
    status_code = 400
    default_message = "invalid request"


class Unauthenticated(RoleGateError):
    status_code = 401
    default_message = "unauthenticated"


class AuthFailure(Unauthenticated):
    # One message for unknown identifier, wrong secret and inactive principal.
    default_message = "invalid credentials"


class TokenMissing(Unauthenticated):
    default_message = "token not provided"


class TokenInvalid(Unauthenticated):
    default_message = "invalid token"


class Forbidden(RoleGateError):
    status_code = 403
    default_message = "forbidden"


class NotFound(RoleGateError):
    status_code = 404
    default_message = "not found"

    def __init__(self, resource: str | None = None, **kwargs: Any) -> None:
        super().__init__(f"{resource} not found" if resource else None, **kwargs)


class StoreError(RoleGateError):
    status_code = 500
    default_message = "internal error"


class Conflict(StoreError):
    status_code = 409
    default_message = "already exists"


# --- Module Notes -----------------------------------------------------------
# 401 (Unauthenticated family) prompts the client to log in again; 403 means the
# current identity will never be allowed. Keep the two families separate.
