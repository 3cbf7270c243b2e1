"""Authentication and role dependencies."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from src.assignx.api.dependencies.repositories import UserRepo
from src.assignx.core.logging import bind_user_context
from src.assignx.core.security import decode_token
from src.assignx.lifecycle import Actor
from src.assignx.models.enums import Role
from src.assignx.models.user import User
from src.assignx.services.auth_service import TokenType


async def get_current_user(
    user_repo: UserRepo,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Validate the bearer access token and return the active user behind it."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
        )

    payload = decode_token(authorization[7:])
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    if payload.get("type") != TokenType.ACCESS:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user_uuid = UUID(user_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user_id in token",
        ) from e

    user = await user_repo.get_by_id(user_uuid)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    # The stored role is authoritative; a stale token cannot widen it
    if payload.get("role") != user.role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token role does not match user",
        )

    bind_user_context(user.id, user.role)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_current_actor(user: CurrentUser) -> Actor:
    return Actor(id=user.id, role=Role(user.role))


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


def _require_role(role: Role):
    async def dependency(user: CurrentUser) -> User:
        if user.role != role.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.value.capitalize()} role required for this operation",
            )
        return user

    return dependency


SupervisorUser = Annotated[User, Depends(_require_role(Role.SUPERVISOR))]


async def require_earner(user: CurrentUser) -> User:
    """Doers and supervisors have a payout ledger; clients do not."""
    if user.role not in (Role.DOER.value, Role.SUPERVISOR.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only doers and supervisors have earnings",
        )
    return user


EarnerUser = Annotated[User, Depends(require_earner)]
