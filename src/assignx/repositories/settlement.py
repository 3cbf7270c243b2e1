"""Repositories for quotes and payouts."""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert
from sqlmodel import select

from src.assignx.models.enums import PayoutStatus
from src.assignx.models.settlement import Payout, ProjectQuote
from src.assignx.repositories.base import BaseRepository


class QuoteRepository(BaseRepository[ProjectQuote]):
    model = ProjectQuote

    async def get_latest(self, project_id: UUID) -> ProjectQuote | None:
        result = await self.session.execute(
            select(ProjectQuote)
            .where(ProjectQuote.project_id == project_id)
            .order_by(ProjectQuote.created_at.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        return result.scalar_one_or_none()


class PayoutRepository(BaseRepository[Payout]):
    model = Payout

    async def create_if_absent(self, payout: Payout) -> bool:
        """Insert the payout unless one exists for the same project and role.

        Returns:
            True if a row was inserted.
        """
        stmt = (
            insert(Payout)
            .values(
                id=payout.id,
                project_id=payout.project_id,
                recipient_id=payout.recipient_id,
                recipient_role=payout.recipient_role,
                amount=payout.amount,
                status=payout.status,
                created_at=payout.created_at,
            )
            .on_conflict_do_nothing(constraint="uq_payouts_project_role")
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list_by_project(self, project_id: UUID) -> list[Payout]:
        result = await self.session.execute(select(Payout).where(Payout.project_id == project_id))
        return list(result.scalars().all())

    async def total_for_recipient(self, recipient_id: UUID) -> tuple[Decimal, int]:
        """Sum and count of payouts owed to a recipient."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(Payout.amount), 0), func.count()).where(
                Payout.recipient_id == recipient_id
            )
        )
        total, count = result.one()
        return Decimal(total), int(count)

    async def list_by_recipient(
        self,
        recipient_id: UUID,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[Payout], str | None, bool]:
        query = select(Payout).where(Payout.recipient_id == recipient_id)
        return await self.paginate(query, cursor, limit, Payout.created_at)

    async def pending_total_for_recipient(self, recipient_id: UUID) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(Payout.amount), 0)).where(
                Payout.recipient_id == recipient_id,
                Payout.status == PayoutStatus.PENDING.value,
            )
        )
        return Decimal(result.scalar_one())
