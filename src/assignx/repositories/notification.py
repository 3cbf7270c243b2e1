"""Repositories for notifications and the supervisor doer blacklist."""

from uuid import UUID

from sqlalchemy import update
from sqlmodel import select

from src.assignx.models.base import utc_now
from src.assignx.models.notification import Notification, SupervisorBlacklistedDoer
from src.assignx.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[Notification], str | None, bool]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712
        return await self.paginate(query, cursor, limit, Notification.created_at)

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        """Mark one of the user's notifications as read. False if not theirs."""
        stmt = (
            update(Notification)
            .where(Notification.id == notification_id)  # type: ignore[arg-type]
            .where(Notification.user_id == user_id)  # type: ignore[arg-type]
            .values(is_read=True, read_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]


class BlacklistRepository(BaseRepository[SupervisorBlacklistedDoer]):
    model = SupervisorBlacklistedDoer

    async def get(self, supervisor_id: UUID, doer_id: UUID) -> SupervisorBlacklistedDoer | None:
        result = await self.session.execute(
            select(SupervisorBlacklistedDoer).where(
                SupervisorBlacklistedDoer.supervisor_id == supervisor_id,
                SupervisorBlacklistedDoer.doer_id == doer_id,
            )
        )
        return result.scalar_one_or_none()

    async def is_blacklisted(self, supervisor_id: UUID, doer_id: UUID) -> bool:
        return await self.get(supervisor_id, doer_id) is not None

    async def list_for_supervisor(self, supervisor_id: UUID) -> list[SupervisorBlacklistedDoer]:
        result = await self.session.execute(
            select(SupervisorBlacklistedDoer)
            .where(SupervisorBlacklistedDoer.supervisor_id == supervisor_id)
            .order_by(SupervisorBlacklistedDoer.created_at)
        )
        return list(result.scalars().all())

    async def delete(self, entry: SupervisorBlacklistedDoer) -> None:
        await self.session.delete(entry)
