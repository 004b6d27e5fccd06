"""
Account endpoints: registration, password login and the current user.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from digital_menu.core.config import get_settings
from digital_menu.core.security import create_access_token, hash_password, verify_password
from digital_menu.database import get_db
from digital_menu.dependencies import get_current_user
from digital_menu.errors import ApiError, ErrorCode
from digital_menu.models import Plan, User
from digital_menu.schemas import (
    ApiResponse,
    ErrorResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=ApiResponse[RegisterResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Register Account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[RegisterResponse]:
    """Create an owner account on the FREE plan."""
    result = await db.execute(select(User.id).where(User.email == payload.email))
    if result.scalar_one_or_none() is not None:
        raise ApiError(
            ErrorCode.EMAIL_EXISTS,
            "An account with this email already exists",
            status_code=409,
        )

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        plan=Plan.FREE,
    )
    db.add(user)
    await db.commit()

    logger.info(f"Registered user {user.id}")
    return ApiResponse(data=RegisterResponse(user=UserResponse.model_validate(user)))


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    responses={401: {"model": ErrorResponse}},
    summary="Log In",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[TokenResponse]:
    """Exchange email and password for a bearer token."""
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(payload.password, user.password):
        raise ApiError(
            ErrorCode.INVALID_CREDENTIALS,
            "Invalid email or password",
            status_code=401,
        )

    settings = get_settings()
    token = create_access_token({"sub": user.id})
    return ApiResponse(
        data=TokenResponse(
            access_token=token,
            expires_in=settings.access_token_expire_minutes * 60,
            user=UserResponse.model_validate(user),
        )
    )


@router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    responses={401: {"model": ErrorResponse}},
    summary="Current User",
)
async def me(user: User = Depends(get_current_user)) -> ApiResponse[UserResponse]:
    return ApiResponse(data=UserResponse.model_validate(user))
