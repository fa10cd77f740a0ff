"""
Auth endpoints
==============

POST /api/auth/{driver|passenger}/register -- create an account, returns a token
POST /api/auth/{driver|passenger}/login    -- role-scoped login, returns a token
POST /api/auth/set-role                    -- driver switches driver/passenger mode
GET  /api/auth/me                          -- current account
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rideshare.api.dependencies import get_current_account, get_db
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    AccountResponse,
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SetRoleRequest,
    SetRoleResponse,
)
from rideshare.config import settings
from rideshare.domain.enums import Role
from rideshare.infrastructure.models import AccountModel
from rideshare.services.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


async def _register(role: Role, body: RegisterRequest, db: AsyncSession) -> AuthResponse:
    account, token = await AccountService(db).register(
        role,
        name=body.name,
        email=body.email,
        phone=body.phone,
        password=body.password,
        password_confirm=body.password_confirm,
    )
    return AuthResponse(token=token, account=AccountResponse.model_validate(account))


async def _login(role: Role, body: LoginRequest, db: AsyncSession) -> AuthResponse:
    account, token = await AccountService(db).login(
        role, email=body.email, password=body.password
    )
    return AuthResponse(token=token, account=AccountResponse.model_validate(account))


@router.post(
    "/driver/register",
    status_code=201,
    response_model=AuthResponse,
    summary="Register a driver",
)
@limiter.limit(settings.rate_limit)
async def register_driver(
    request: Request, body: RegisterRequest, db: AsyncSession = Depends(get_db)
):
    return await _register(Role.DRIVER, body, db)


@router.post(
    "/passenger/register",
    status_code=201,
    response_model=AuthResponse,
    summary="Register a passenger",
)
@limiter.limit(settings.rate_limit)
async def register_passenger(
    request: Request, body: RegisterRequest, db: AsyncSession = Depends(get_db)
):
    return await _register(Role.PASSENGER, body, db)


@router.post("/driver/login", response_model=AuthResponse, summary="Driver login")
@limiter.limit(settings.rate_limit)
async def login_driver(
    request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)
):
    return await _login(Role.DRIVER, body, db)


@router.post("/passenger/login", response_model=AuthResponse, summary="Passenger login")
@limiter.limit(settings.rate_limit)
async def login_passenger(
    request: Request, body: LoginRequest, db: AsyncSession = Depends(get_db)
):
    return await _login(Role.PASSENGER, body, db)


@router.post(
    "/set-role",
    response_model=SetRoleResponse,
    summary="Switch a driver between driver and passenger mode",
)
@limiter.limit(settings.rate_limit)
async def set_role(
    request: Request,
    body: SetRoleRequest,
    account: AccountModel = Depends(get_current_account),
    db: AsyncSession = Depends(get_db),
):
    account = await AccountService(db).set_active_role(account, body.role)
    return SetRoleResponse(
        active_role=account.active_role,
        account=AccountResponse.model_validate(account),
    )


@router.get("/me", response_model=AccountResponse, summary="Current account")
@limiter.limit(settings.rate_limit)
async def me(request: Request, account: AccountModel = Depends(get_current_account)):
    return account
