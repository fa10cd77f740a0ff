"""
Auth Service: the single owner of the client's ``Session``.

Pages receive this object and read identity from it; nothing else touches
the Session Store directly apart from the transport's 401 handling.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from rideshare.api.schemas import AccountResponse, AuthResponse, SetRoleResponse
from rideshare.client.session import Session, SessionStore
from rideshare.client.transport import ApiClient
from rideshare.config import settings
from rideshare.domain.entities import ensure_can_switch, resolve_active_role
from rideshare.domain.enums import Role
from rideshare.domain.errors import AuthError, NotFoundError
from rideshare.domain.validation import ensure_valid, registration_errors

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    def __init__(self, api: ApiClient, store: Optional[SessionStore] = None):
        self.api = api
        self.store = store or api.store
        self._session: Optional[Session] = self.store.load()
        api.add_unauthorized_listener(self._forget)

    # ── Identity ──────────────────────────────────────────────────

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def account(self) -> Optional[dict[str, Any]]:
        return self._session.account if self._session else None

    @property
    def role(self) -> Optional[Role]:
        return self._session.role if self._session else None

    @property
    def active_role(self) -> Optional[Role]:
        return self._session.active_role if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._session and self._session.token and self._session.account)

    @property
    def is_driver(self) -> bool:
        return self.role is Role.DRIVER

    @property
    def is_passenger(self) -> bool:
        return self.role is Role.PASSENGER

    @property
    def is_in_driver_mode(self) -> bool:
        return self.active_role is Role.DRIVER

    @property
    def is_in_passenger_mode(self) -> bool:
        return self.active_role is Role.PASSENGER

    # ── Registration / login ──────────────────────────────────────

    async def register_driver(
        self, name: str, email: str, phone: str, password: str, password_confirm: str
    ) -> AccountResponse:
        return await self._register(
            Role.DRIVER, name, email, phone, password, password_confirm
        )

    async def register_passenger(
        self, name: str, email: str, phone: str, password: str, password_confirm: str
    ) -> AccountResponse:
        return await self._register(
            Role.PASSENGER, name, email, phone, password, password_confirm
        )

    async def login_driver(self, email: str, password: str) -> AccountResponse:
        return await self._login(Role.DRIVER, email, password)

    async def login_passenger(self, email: str, password: str) -> AccountResponse:
        return await self._login(Role.PASSENGER, email, password)

    # ── Role switching / logout ───────────────────────────────────

    async def switch_role(self, new_role: str) -> SetRoleResponse:
        """Flip a driver between driver and passenger mode."""
        if not self.is_authenticated:
            raise AuthError("Please log in first")
        target = ensure_can_switch(self.role, new_role)

        data = await self.api.post("/auth/set-role", json={"role": target.value})
        ack = SetRoleResponse.model_validate(data)
        self._set_session(
            self._session.with_active_role(
                ack.active_role, ack.account.model_dump(mode="json", by_alias=True)
            )
        )
        return ack

    def logout(self) -> None:
        self.store.clear()
        self._session = None

    # ── Internals ─────────────────────────────────────────────────

    async def _register(
        self,
        role: Role,
        name: str,
        email: str,
        phone: str,
        password: str,
        password_confirm: str,
    ) -> AccountResponse:
        ensure_valid(
            registration_errors(
                name,
                email,
                phone,
                password,
                password_confirm,
                settings.min_password_length,
            )
        )
        data = await self.api.post(
            f"/auth/{role.value}/register",
            json={
                "name": name,
                "email": email,
                "phone": phone,
                "password": password,
                "passwordConfirm": password_confirm,
            },
            invalidate_on_401=False,
        )
        return self._start_session(role, AuthResponse.model_validate(data))

    async def _login(self, role: Role, email: str, password: str) -> AccountResponse:
        try:
            data = await self.api.post(
                f"/auth/{role.value}/login",
                json={"email": email, "password": password},
                invalidate_on_401=False,
            )
        except (AuthError, NotFoundError) as exc:
            raise AuthError(exc.message or INVALID_CREDENTIALS) from None
        return self._start_session(role, AuthResponse.model_validate(data))

    def _start_session(self, role: Role, auth: AuthResponse) -> AccountResponse:
        account = auth.account
        self._set_session(
            Session(
                token=auth.token,
                account=account.model_dump(mode="json", by_alias=True),
                role=role,
                active_role=resolve_active_role(role, account.active_role),
            )
        )
        logger.info("Signed in as %s %d", role.value, account.id)
        return account

    def _set_session(self, session: Session) -> None:
        self.store.save(session)
        self._session = session

    def _forget(self) -> None:
        self._session = None

