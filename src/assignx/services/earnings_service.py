from decimal import Decimal
from uuid import UUID

from src.assignx.lifecycle import to_money
from src.assignx.models.enums import Role
from src.assignx.models.settlement import Payout
from src.assignx.repositories import PayoutRepository, ProjectRepository
from src.assignx.schemas.earnings import EarningsSummary


class EarningsService:
    """Read-only view over the payout ledger for doers and supervisors."""

    def __init__(self, payout_repo: PayoutRepository, project_repo: ProjectRepository):
        self.payout_repo = payout_repo
        self.project_repo = project_repo

    async def summary(self, user_id: UUID, role: Role) -> EarningsSummary:
        total, payout_count = await self.payout_repo.total_for_recipient(user_id)
        pending = await self.payout_repo.pending_total_for_recipient(user_id)
        completed, on_time = await self.project_repo.delivery_stats(user_id, role)

        return EarningsSummary(
            total_earned=to_money(total),
            pending_amount=to_money(pending),
            completed_projects=completed,
            average_payout=to_money(total / payout_count) if payout_count else Decimal("0.00"),
            on_time_rate=round(on_time / completed, 4) if completed else None,
        )

    async def list_payouts(
        self, user_id: UUID, cursor: str | None = None, limit: int = 50
    ) -> tuple[list[Payout], str | None, bool]:
        return await self.payout_repo.list_by_recipient(user_id, cursor, limit)
