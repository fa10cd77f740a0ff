"""
Account service: registration, role-scoped login and driver mode switching.

Tokens are issued here; the client-side session lifecycle lives in
``rideshare.client``.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.domain.entities import ensure_can_switch
from rideshare.domain.enums import Role
from rideshare.domain.errors import AuthError, ConflictError
from rideshare.domain.validation import ensure_valid, registration_errors
from rideshare.infrastructure.models import AccountModel
from rideshare.infrastructure.repositories import AccountRepository
from rideshare.infrastructure.security import (
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "An account with this email already exists"


class AccountService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.accounts = AccountRepository(session)

    async def register(
        self,
        role: Role,
        *,
        name: str,
        email: str,
        phone: str,
        password: str,
        password_confirm: str,
    ) -> tuple[AccountModel, str]:
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
        if await self.accounts.get_by_email(email):
            raise ConflictError(DUPLICATE_EMAIL)

        try:
            account = await self.accounts.create(
                AccountModel(
                    name=name.strip(),
                    email=email.strip().lower(),
                    phone=phone.strip(),
                    password_hash=hash_password(password),
                    role=role,
                    active_role=role,
                    average_rating=0.0,
                    total_ratings=0,
                )
            )
        except IntegrityError:
            raise ConflictError(DUPLICATE_EMAIL) from None
        logger.info("Registered %s account %d", role.value, account.id)
        return account, create_access_token(account.id, role.value)

    async def login(
        self, role: Role, *, email: str, password: str
    ) -> tuple[AccountModel, str]:
        account = await self.accounts.get_by_email(email or "")
        if (
            account is None
            or Role(account.role) is not role
            or not verify_password(password or "", account.password_hash)
        ):
            logger.info("Rejected %s login", role.value)
            raise AuthError(INVALID_CREDENTIALS)
        return account, create_access_token(account.id, role.value)

    async def set_active_role(self, account: AccountModel, new_role: str) -> AccountModel:
        account.active_role = ensure_can_switch(account.role, new_role)
        await self.session.flush()
        logger.info("Account %d now active as %s", account.id, account.active_role.value)
        return account

