"""
tests.test_guard

Authorization guard state machine, exercised without HTTP.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from rolegate.auth.guard import AccessPolicy, AuthorizationGuard, bearer_token
from rolegate.auth.models import Principal, Role
from rolegate.auth.tokens import JwtConfig, TokenCodec
from rolegate.errors import Forbidden, TokenInvalid, TokenMissing

ALICE = Principal(id=7, role=Role.user, display_name="Alice")
ROOT = Principal(id=1, role=Role.admin, display_name="Root")


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(JwtConfig(alg="HS256", issuer="rolegate", secret="g" * 40))


@pytest.fixture
def guard(codec: TokenCodec) -> AuthorizationGuard:
    return AuthorizationGuard(codec)


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Bearer", None),
        ("Bearer   ", None),
        ("Basic abc", None),
        ("Bearer abc", "abc"),
        ("bearer abc", "abc"),
    ],
)
def test_bearer_token_extraction(header: str | None, expected: str | None) -> None:
    assert bearer_token(header) == expected


def test_missing_and_invalid_tokens(guard: AuthorizationGuard) -> None:
    with pytest.raises(TokenMissing):
        guard.authenticate(None)
    with pytest.raises(TokenInvalid):
        guard.authenticate("Bearer not-a-jwt")


def test_valid_token_yields_principal(guard: AuthorizationGuard, codec: TokenCodec) -> None:
    token = codec.issue(principal_id=7, role="user", display_name="Alice", ttl=timedelta(hours=1))
    policy = AccessPolicy.of(Role.user, owner="user_id")
    assert guard.check(f"Bearer {token}", policy, {"user_id": "7"}) == ALICE


def test_role_outside_policy_is_forbidden(guard: AuthorizationGuard) -> None:
    with pytest.raises(Forbidden):
        guard.authorize(ALICE, AccessPolicy.of(Role.hospital))
    # Admins are not implicitly allowed on routes that do not list them.
    with pytest.raises(Forbidden):
        guard.authorize(ROOT, AccessPolicy.of(Role.user))


def test_owner_mismatch_is_forbidden(guard: AuthorizationGuard) -> None:
    policy = AccessPolicy.of(Role.user, Role.admin, owner="user_id")
    for value in ("8", "abc", None):
        with pytest.raises(Forbidden):
            guard.authorize(ALICE, policy, {"user_id": value})


def test_admin_bypasses_ownership(guard: AuthorizationGuard) -> None:
    policy = AccessPolicy.of(Role.user, Role.admin, owner="user_id")
    assert guard.authorize(ROOT, policy, {"user_id": "999"}) == ROOT
