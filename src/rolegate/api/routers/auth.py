"""
rolegate.api.routers.auth

Login, self-service registration and identity endpoints.

Responsibilities:
- One login endpoint for all four roles (`/api/auth/login`).
- Register users and hospitals and hand back a token straight away.
- Report the caller's own identity (`/api/auth/me`).

Login failures answer with one body whatever the cause, so callers cannot tell
an unknown identifier from a wrong secret or an inactive account.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import AfterValidator, BaseModel, EmailStr, Field
from starlette.status import HTTP_201_CREATED

from rolegate.api.deps import auth_service
from rolegate.auth.deps import get_principal
from rolegate.auth.models import IssuedToken, Principal, Role
from rolegate.auth.service import AuthenticationService
from rolegate.observability.middleware import client_ip

router = APIRouter(prefix="/api", tags=["auth"])

# bcrypt only looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def _fits_bcrypt(value: str) -> str:
    if len(value.encode("utf-8")) > _BCRYPT_MAX_BYTES:
        raise ValueError("password is too long")
    return value


Password = Annotated[
    str, Field(min_length=8, max_length=_BCRYPT_MAX_BYTES), AfterValidator(_fits_bcrypt)
]

# Phone numbers never contain "@", so a login identifier is either one or the other.
Phone = Annotated[str, Field(min_length=6, max_length=32, pattern=r"^\+?[0-9 ()-]+$")]


class LoginRequest(BaseModel):
    role: Role
    identifier: str = Field(min_length=1, max_length=256)
    # Agencies log in with their access code alone.
    secret: str | None = Field(default=None, max_length=256)


class UserRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    last_name: str = Field(min_length=1, max_length=128)
    phone: Phone
    email: EmailStr | None = None
    state: str = Field(min_length=1, max_length=128)
    password: Password


class HospitalRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    email: EmailStr
    password: Password
    phone: str = Field(min_length=6, max_length=32)
    address: str = Field(default="", max_length=1024)


def _token_body(issued: IssuedToken) -> dict[str, Any]:
    return {
        "success": True,
        "token": issued.token,
        "expires_in": issued.expires_in,
        "principal": issued.principal.summary(),
    }


@router.post("/auth/login")
async def login(
    request: Request,
    body: LoginRequest,
    svc: AuthenticationService = Depends(auth_service),
) -> dict[str, Any]:
    issued = await svc.login(
        role=body.role,
        identifier=body.identifier.strip(),
        secret=body.secret,
        ip=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _token_body(issued)


@router.post("/users/register", status_code=HTTP_201_CREATED)
async def register_user(
    body: UserRegisterRequest,
    svc: AuthenticationService = Depends(auth_service),
) -> dict[str, Any]:
    fields = body.model_dump(exclude={"password"})
    issued = await svc.register_user(password=body.password, **fields)
    return _token_body(issued)


@router.post("/hospitals/register", status_code=HTTP_201_CREATED)
async def register_hospital(
    body: HospitalRegisterRequest,
    svc: AuthenticationService = Depends(auth_service),
) -> dict[str, Any]:
    fields = body.model_dump(exclude={"password"})
    issued = await svc.register_hospital(password=body.password, **fields)
    return _token_body(issued)


@router.get("/auth/me")
async def me(principal: Principal = Depends(get_principal)) -> dict[str, Any]:
    return {"success": True, "principal": principal.summary()}
