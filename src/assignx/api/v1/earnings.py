"""Earnings summary and payout ledger for doers and supervisors."""

from typing import Annotated

from fastapi import APIRouter, Query

from src.assignx.api.dependencies import EarnerUser, EarningsServiceDep
from src.assignx.models.enums import Role
from src.assignx.schemas.earnings import EarningsSummary, PayoutRead
from src.assignx.schemas.pagination import PaginatedResponse

router = APIRouter(prefix="/earnings", tags=["earnings"])


@router.get("", response_model=EarningsSummary)
async def get_earnings(user: EarnerUser, service: EarningsServiceDep) -> EarningsSummary:
    return await service.summary(user.id, Role(user.role))


@router.get("/payouts", response_model=PaginatedResponse[PayoutRead])
async def list_payouts(
    user: EarnerUser,
    service: EarningsServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> PaginatedResponse[PayoutRead]:
    items, next_cursor, has_more = await service.list_payouts(user.id, cursor, limit)
    return PaginatedResponse(
        items=[PayoutRead.model_validate(p) for p in items],
        next_cursor=next_cursor,
        has_more=has_more,
    )
