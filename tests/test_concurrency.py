"""
tests.test_concurrency

Uniqueness under concurrent writers is decided by the store, not by Python.
"""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI

from rolegate.auth.service import AuthenticationService
from rolegate.errors import Conflict


@pytest.mark.asyncio
async def test_concurrent_duplicate_registration_yields_one_conflict(app: FastAPI) -> None:
    async def register(name: str) -> object:
        async with app.state.sessionmaker() as session:
            svc = AuthenticationService(
                session=session,
                settings=app.state.settings,
                codec=app.state.codec,
                hasher=app.state.hasher,
            )
            return await svc.register_user(
                password="same-phone-pass",
                name=name,
                last_name="Race",
                phone="5550000042",
                email=None,
                state="Jalisco",
            )

    results = await asyncio.gather(register("First"), register("Second"), return_exceptions=True)

    conflicts = [r for r in results if isinstance(r, Conflict)]
    issued = [r for r in results if not isinstance(r, BaseException)]
    assert len(conflicts) == 1
    assert len(issued) == 1
