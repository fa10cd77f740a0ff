"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.config import settings
from rideshare.domain.errors import AuthError, AuthorizationError
from rideshare.infrastructure.database import async_session_factory
from rideshare.infrastructure.models import AccountModel
from rideshare.infrastructure.repositories import AccountRepository
from rideshare.infrastructure.security import decode_access_token

_bearer = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    db: AsyncSession = Depends(get_db),
) -> AccountModel:
    """Resolve the bearer token to an account; 401 if absent or stale."""
    if credentials is None:
        raise AuthError("Not authenticated")
    account_id = decode_access_token(credentials.credentials)
    account = await AccountRepository(db).get_by_id(account_id)
    if account is None:
        raise AuthError("Account no longer exists")
    return account


async def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Admin routes are open when no ``ADMIN_TOKEN`` is configured (local dev)."""
    if settings.admin_token and x_admin_token != settings.admin_token:
        raise AuthorizationError("Admin token required")
