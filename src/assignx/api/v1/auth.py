"""Authentication endpoints."""

from fastapi import APIRouter, HTTPException, status
from starlette.requests import Request

from src.assignx.api.dependencies import AuditServiceDep, AuthServiceDep, UserServiceDep
from src.assignx.core.rate_limit import limiter
from src.assignx.models.audit import AuditAction
from src.assignx.models.enums import Role
from src.assignx.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.assignx.schemas.user import UserRead

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Successful authentication",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                    }
                }
            },
        },
        401: {"description": "Invalid credentials"},
    },
)
@limiter.limit("5/minute")
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthServiceDep,
    audit: AuditServiceDep,
) -> LoginResponse:
    """Authenticate and return an access/refresh token pair."""
    result = await service.authenticate(login_data.email, login_data.password)

    if result is None:
        await audit.log_failure(
            AuditAction.USER_LOGIN,
            entity_type="user",
            error_message="Invalid credentials",
            changes={"email": login_data.email},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    user, tokens = result
    await audit.log_success(AuditAction.USER_LOGIN, entity_type="user", entity_id=user.id, user_id=user.id)
    return tokens


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    responses={401: {"description": "Invalid or expired refresh token"}},
)
@limiter.limit("10/minute")
async def refresh(
    request: Request, refresh_data: RefreshRequest, service: AuthServiceDep
) -> RefreshResponse:
    """Exchange a refresh token for a new pair. The old refresh token is revoked."""
    result = await service.refresh_access_token(refresh_data.refresh_token)

    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    access_token, refresh_token = result
    return RefreshResponse(access_token=access_token, refresh_token=refresh_token)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered"}},
)
@limiter.limit("3/hour")
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: UserServiceDep,
    audit: AuditServiceDep,
) -> RegisterResponse:
    """Create a client, supervisor or doer account."""
    try:
        user = await service.register(
            email=register_data.email,
            password=register_data.password,
            full_name=register_data.full_name,
            role=Role(register_data.role),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e

    await audit.log_success(
        AuditAction.USER_REGISTER,
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        changes={"role": user.role},
    )
    return RegisterResponse(user=UserRead.model_validate(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("5/minute")
async def logout(
    request: Request,
    logout_data: RefreshRequest,
    service: AuthServiceDep,
    audit: AuditServiceDep,
) -> None:
    """Revoke refresh token (logout)."""
    if await service.revoke_refresh_token(logout_data.refresh_token):
        await audit.log_success(AuditAction.USER_LOGOUT, entity_type="user")
