"""
rolegate.auth.service

Authentication service.

Responsibilities:
- Check a login credential against the credential store and issue a token.
- Register self-service principals (users, hospitals) and provision agencies.
- Record successful logins (`last_login` + audit event) without ever failing
  the login because of it.

Every credential failure raises the same `AuthFailure`, whatever the cause
(unknown identifier, wrong secret, inactive principal).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolegate.auth.models import IssuedToken, Principal, Role
from rolegate.auth.passwords import SecretHasher, generate_access_code
from rolegate.auth.tokens import TokenCodec
from rolegate.db.models import Admin, Agency, Hospital, User
from rolegate.db.repositories.audit import AuditRepo
from rolegate.db.repositories.principals import AdminRepo, AgencyRepo, HospitalRepo, UserRepo
from rolegate.errors import AuthFailure, NotFound
from rolegate.observability.logging import get_logger
from rolegate.settings import Settings

log = get_logger(__name__)


class AuthenticationService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        codec: TokenCodec,
        hasher: SecretHasher,
    ) -> None:
        self._session = session
        self._settings = settings
        self._codec = codec
        self._hasher = hasher

        self._users = UserRepo(session)
        self._agencies = AgencyRepo(session)
        self._admins = AdminRepo(session)
        self._hospitals = HospitalRepo(session)
        self._audit = AuditRepo(session)

    # -- tokens ---------------------------------------------------------------

    def issue(self, principal: Principal) -> IssuedToken:
        ttl = self._settings.token_ttl_for(principal.role)
        token = self._codec.issue(
            principal_id=principal.id,
            role=principal.role,
            display_name=principal.display_name,
            ttl=ttl,
        )
        return IssuedToken(token=token, principal=principal, expires_in=int(ttl.total_seconds()))

    # -- login ----------------------------------------------------------------

    async def login(
        self,
        *,
        role: Role,
        identifier: str,
        secret: str | None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedToken:
        principal = await self._check_credentials(role, identifier, secret)
        if principal is None:
            log.info("login_failed", role=role.value)
            raise AuthFailure()

        issued = self.issue(principal)
        await self._record_login(principal, ip=ip, user_agent=user_agent)
        await self._session.commit()
        log.info("login_succeeded", role=role.value, principal_id=principal.id)
        return issued

    async def _check_credentials(
        self, role: Role, identifier: str, secret: str | None
    ) -> Principal | None:
        if role is Role.agency:
            # The access code is both identifier and secret; an active row with a
            # matching digest is the whole check.
            agency = await self._agencies.get_active_by_code_hash(
                self._hasher.digest_access_code(identifier)
            )
            if agency is None:
                return None
            return Principal(id=agency.id, role=Role.agency, display_name=agency.name)

        password = secret or ""
        row: User | Admin | Hospital | None
        if role is Role.user:
            row = await self._users.get_by_identifier(identifier)
        elif role is Role.admin:
            row = await self._admins.get_by_email(identifier)
        else:
            row = await self._hospitals.get_by_email(identifier)

        # verify_password runs bcrypt even when row is None (timing equalization).
        if not self._hasher.verify_password(password, row.password_hash if row else None):
            return None
        if row is None or not row.is_active:
            return None
        return Principal(id=row.id, role=role, display_name=row.name)

    async def _record_login(
        self, principal: Principal, *, ip: str | None, user_agent: str | None
    ) -> None:
        try:
            # SAVEPOINT: a failed audit write rolls back only itself.
            async with self._session.begin_nested():
                await self._repo_for(principal.role).touch_last_login(principal.id)
                await self._audit.add(
                    principal_id=principal.id,
                    role=principal.role.value,
                    action="login",
                    ip=ip,
                    user_agent=user_agent,
                )
        except SQLAlchemyError:
            log.warning(
                "login_audit_failed",
                role=principal.role.value,
                principal_id=principal.id,
                exc_info=True,
            )

    def _repo_for(self, role: Role) -> UserRepo | AgencyRepo | AdminRepo | HospitalRepo:
        return {
            Role.user: self._users,
            Role.agency: self._agencies,
            Role.admin: self._admins,
            Role.hospital: self._hospitals,
        }[role]

    # -- registration / provisioning -----------------------------------------

    async def register_user(self, *, password: str, **fields: Any) -> IssuedToken:
        user = await self._users.create(password_hash=self._hasher.hash_password(password), **fields)
        await self._session.commit()
        log.info("user_registered", principal_id=user.id)
        return self.issue(Principal(id=user.id, role=Role.user, display_name=user.name))

    async def register_hospital(self, *, password: str, **fields: Any) -> IssuedToken:
        hospital = await self._hospitals.create(
            password_hash=self._hasher.hash_password(password), **fields
        )
        await self._session.commit()
        log.info("hospital_registered", principal_id=hospital.id)
        return self.issue(Principal(id=hospital.id, role=Role.hospital, display_name=hospital.name))

    async def provision_agency(self, *, actor: Principal, **fields: Any) -> tuple[Agency, str]:
        """
        Create an agency and return it with its plaintext access code. The code
        is shown exactly once; only its digest is stored.
        """

        code = generate_access_code()
        agency = await self._agencies.create(
            code_hash=self._hasher.digest_access_code(code), **fields
        )
        await self._audit.add(
            principal_id=actor.id,
            role=actor.role.value,
            action="agency_provisioned",
            details={"agency_id": agency.id},
        )
        await self._session.commit()
        return agency, code

    async def regenerate_agency_code(self, *, actor: Principal, agency_id: int) -> str:
        code = generate_access_code()
        agency = await self._agencies.set_code_hash(
            agency_id, self._hasher.digest_access_code(code)
        )
        if agency is None:
            raise NotFound("agency")
        await self._audit.add(
            principal_id=actor.id,
            role=actor.role.value,
            action="agency_code_regenerated",
            details={"agency_id": agency_id},
        )
        await self._session.commit()
        return code

    async def ensure_admin(self, *, email: str, password: str, name: str = "Administrator") -> None:
        if await self._admins.get_by_email(email) is not None:
            return
        await self._admins.create(
            name=name, email=email, password_hash=self._hasher.hash_password(password)
        )
        await self._session.commit()
        log.info("admin_bootstrapped", email=email)


# --- Module Notes -----------------------------------------------------------
# Tokens are never revoked server-side: logging out is a client-side discard, and
# deactivating a principal only blocks its *next* login.
