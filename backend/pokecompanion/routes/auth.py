"""
PokéCompanion Backend: Auth Route Handlers
===========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me,
       PUT /api/auth/change-password.
How:   Thin handlers over AuthService. Register and login are throttled per IP
       by RateLimitMiddleware (see main.py).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokecompanion.database import get_db_session
from pokecompanion.dependencies import CurrentUser, get_auth_service, get_current_user
from pokecompanion.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResult,
    ProfileResponse,
    RegisterRequest,
    UserResponse,
)
from pokecompanion.schemas.common import DataResponse, ErrorResponse, MessageResponse
from pokecompanion.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[UserResponse],
    responses={409: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.register(db, body.username, body.email, body.password)
    return DataResponse(message="User registered successfully", data=UserResponse.model_validate(user))


@router.post(
    "/login",
    response_model=DataResponse[LoginResult],
    responses={401: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    summary="Exchange email and password for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.login(db, body.email, body.password)
    return DataResponse(message="Login successful", data=result)


@router.get(
    "/me",
    response_model=DataResponse[ProfileResponse],
    responses={401: {"model": ErrorResponse}},
    summary="Profile of the authenticated user",
)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
):
    profile = await service.get_profile(db, user.id)
    return DataResponse(message="Profile fetched", data=ProfileResponse.model_validate(profile))


@router.put(
    "/change-password",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Change the password of the authenticated user",
)
async def change_password(
    body: ChangePasswordRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    service: AuthService = Depends(get_auth_service),
):
    await service.change_password(db, user.id, body.old_password, body.new_password)
    return MessageResponse(message="Password updated successfully")
