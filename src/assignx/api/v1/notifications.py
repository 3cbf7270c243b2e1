"""In-app notification inbox."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from src.assignx.api.dependencies import CurrentUser, NotificationServiceDep
from src.assignx.schemas.notification import NotificationRead
from src.assignx.schemas.pagination import PaginatedResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=PaginatedResponse[NotificationRead])
async def list_notifications(
    user: CurrentUser,
    service: NotificationServiceDep,
    unread_only: Annotated[bool, Query()] = False,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> PaginatedResponse[NotificationRead]:
    items, next_cursor, has_more = await service.list_for_user(user.id, unread_only, cursor, limit)
    return PaginatedResponse(
        items=[NotificationRead.model_validate(n) for n in items],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Notification not found"}},
)
async def mark_read(notification_id: UUID, user: CurrentUser, service: NotificationServiceDep) -> None:
    if not await service.mark_read(notification_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
