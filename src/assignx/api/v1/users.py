"""User profile endpoints."""

from fastapi import APIRouter

from src.assignx.api.dependencies import CurrentUser, UserServiceDep
from src.assignx.schemas.user import UserRead, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=UserRead,
    responses={
        200: {
            "description": "Current user profile",
            "content": {
                "application/json": {
                    "example": {
                        "id": "550e8400-e29b-41d4-a716-446655440000",
                        "email": "writer@example.com",
                        "full_name": "Jane Doe",
                        "role": "doer",
                        "is_active": True,
                        "created_at": "2024-01-15T10:30:00Z",
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
    },
)
async def get_current_user(current_user: CurrentUser) -> UserRead:
    return UserRead.model_validate(current_user)


@router.patch(
    "/me",
    response_model=UserRead,
    responses={401: {"description": "Not authenticated"}, 422: {"description": "Validation error"}},
)
async def update_current_user(
    data: UserUpdate,
    current_user: CurrentUser,
    service: UserServiceDep,
) -> UserRead:
    updated_user = await service.update(current_user, data)
    return UserRead.model_validate(updated_user)
