"""Supervisor-managed list of doers who may not be assigned their projects."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.assignx.core.logging import get_logger
from src.assignx.models.audit import AuditAction
from src.assignx.models.enums import Role
from src.assignx.models.notification import SupervisorBlacklistedDoer
from src.assignx.repositories import BlacklistRepository, UserRepository
from src.assignx.services.audit_service import AuditService

logger = get_logger(__name__)


class BlacklistService:
    def __init__(
        self,
        blacklist_repo: BlacklistRepository,
        user_repo: UserRepository,
        session: AsyncSession,
        audit: AuditService | None = None,
    ):
        self.blacklist_repo = blacklist_repo
        self.user_repo = user_repo
        self.session = session
        self.audit = audit

    async def list_for_supervisor(self, supervisor_id: UUID) -> list[SupervisorBlacklistedDoer]:
        return await self.blacklist_repo.list_for_supervisor(supervisor_id)

    async def add(
        self, supervisor_id: UUID, doer_id: UUID, reason: str | None = None
    ) -> SupervisorBlacklistedDoer:
        """Blacklist a doer. Adding an existing entry returns it unchanged.

        Raises:
            ValueError: The user is not a doer.
        """
        doer = await self.user_repo.get_by_id(doer_id)
        if doer is None or doer.role != Role.DOER.value:
            raise ValueError("User is not a doer")

        existing = await self.blacklist_repo.get(supervisor_id, doer_id)
        if existing is not None:
            return existing

        entry = SupervisorBlacklistedDoer(supervisor_id=supervisor_id, doer_id=doer_id, reason=reason)
        self.blacklist_repo.add(entry)
        try:
            await self.session.commit()
        except IntegrityError:
            # Concurrent insert of the same pair
            await self.session.rollback()
            existing = await self.blacklist_repo.get(supervisor_id, doer_id)
            if existing is None:
                raise
            return existing

        if self.audit is not None:
            await self.audit.log_success(
                AuditAction.DOER_BLACKLISTED,
                entity_type="user",
                entity_id=doer_id,
                user_id=supervisor_id,
                changes={"reason": reason},
            )
        return entry

    async def remove(self, supervisor_id: UUID, doer_id: UUID) -> bool:
        entry = await self.blacklist_repo.get(supervisor_id, doer_id)
        if entry is None:
            return False
        try:
            await self.blacklist_repo.delete(entry)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        if self.audit is not None:
            await self.audit.log_success(
                AuditAction.DOER_UNBLACKLISTED,
                entity_type="user",
                entity_id=doer_id,
                user_id=supervisor_id,
            )
        return True
