"""Supervisor doer blacklist endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from src.assignx.api.dependencies import BlacklistServiceDep, SupervisorUser
from src.assignx.schemas.blacklist import BlacklistCreate, BlacklistRead

router = APIRouter(prefix="/blacklist", tags=["blacklist"])


@router.get("", response_model=list[BlacklistRead])
async def list_blacklist(user: SupervisorUser, service: BlacklistServiceDep) -> list[BlacklistRead]:
    entries = await service.list_for_supervisor(user.id)
    return [BlacklistRead.model_validate(e) for e in entries]


@router.post(
    "",
    response_model=BlacklistRead,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"description": "User is not a doer"}},
)
async def add_to_blacklist(
    data: BlacklistCreate, user: SupervisorUser, service: BlacklistServiceDep
) -> BlacklistRead:
    """Stop a doer from being assigned to this supervisor's projects."""
    try:
        entry = await service.add(user.id, data.doer_id, data.reason)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e
    return BlacklistRead.model_validate(entry)


@router.delete(
    "/{doer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Doer is not blacklisted"}},
)
async def remove_from_blacklist(
    doer_id: UUID, user: SupervisorUser, service: BlacklistServiceDep
) -> None:
    if not await service.remove(user.id, doer_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doer is not blacklisted",
        )
