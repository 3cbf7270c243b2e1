"""Notification service - one event per status transition.

Notifications are written on an isolated session after the transition has
committed. Nothing here may fail a lifecycle action: errors are logged and
dropped. API requests hand their notices to dispatch_in_background so that
delivery never counts against the action's deadline.
"""

import asyncio
import contextlib
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.assignx.core.db import get_session
from src.assignx.core.logging import get_logger
from src.assignx.core.notifications import send_project_update_email
from src.assignx.models.enums import NotificationType, ProjectStatus, Role
from src.assignx.models.notification import Notification
from src.assignx.repositories.notification import NotificationRepository
from src.assignx.repositories.user import UserRepository

logger = get_logger(__name__)

_STATUS_NOTIFICATION_TYPES: dict[ProjectStatus, NotificationType] = {
    ProjectStatus.SUBMITTED: NotificationType.PROJECT_SUBMITTED,
    ProjectStatus.QUOTED: NotificationType.QUOTE_READY,
    ProjectStatus.PAID: NotificationType.PAYMENT_RECEIVED,
    ProjectStatus.ASSIGNED: NotificationType.TASK_ASSIGNED,
    ProjectStatus.SUBMITTED_FOR_QC: NotificationType.WORK_SUBMITTED,
    ProjectStatus.QC_APPROVED: NotificationType.QC_APPROVED,
    ProjectStatus.QC_REJECTED: NotificationType.QC_REJECTED,
    ProjectStatus.REVISION_REQUESTED: NotificationType.REVISION_REQUESTED,
    ProjectStatus.DELIVERED: NotificationType.PROJECT_DELIVERED,
    ProjectStatus.COMPLETED: NotificationType.PROJECT_COMPLETED,
    ProjectStatus.CANCELLED: NotificationType.PROJECT_CANCELLED,
    ProjectStatus.REFUNDED: NotificationType.PROJECT_CANCELLED,
}

# Keep background tasks referenced until they finish
_email_tasks: set[asyncio.Task[bool]] = set()
_delivery_tasks: set[asyncio.Task[None]] = set()


@dataclass(frozen=True)
class TransitionNotice:
    """What happened to a project, as told to its participants."""

    project_id: UUID
    project_number: str
    from_status: ProjectStatus | None
    to_status: ProjectStatus
    actor_id: UUID | None
    actor_role: Role
    occurred_at: datetime
    recipients: frozenset[UUID] = field(default_factory=frozenset)
    notes: str | None = None

    @property
    def notification_type(self) -> NotificationType:
        return _STATUS_NOTIFICATION_TYPES.get(self.to_status, NotificationType.STATUS_CHANGED)

    def title(self) -> str:
        return f"Project {self.project_number} is now {self.to_status.value.replace('_', ' ')}"

    def body(self) -> str:
        text = (
            f"Status changed to {self.to_status.value} by {self.actor_role.value} "
            f"at {self.occurred_at.isoformat()}."
        )
        if self.notes:
            text = f"{text} Note: {self.notes}"
        return text


@dataclass(frozen=True)
class UserNotice:
    """A message for one user that is not tied to a status change."""

    user_id: UUID
    notification_type: NotificationType
    title: str
    body: str
    project_id: UUID | None = None


Notice = TransitionNotice | UserNotice


class NotificationService:
    def __init__(
        self,
        notification_repo: NotificationRepository,
        user_repo: UserRepository,
        session: AsyncSession,
        send_email: bool = True,
    ):
        self.notification_repo = notification_repo
        self.user_repo = user_repo
        self.session = session
        self.send_email = send_email

    async def notify_transition(self, notice: TransitionNotice) -> int:
        """Persist one notification per recipient and queue emails.

        Returns:
            Number of notifications written (0 on failure).
        """
        recipients = {r for r in notice.recipients if r != notice.actor_id}
        if not recipients:
            logger.info(
                "Transition has no one to notify",
                project_id=str(notice.project_id),
                to_status=notice.to_status.value,
                actor_role=notice.actor_role.value,
            )
            return 0
        try:
            for user_id in sorted(recipients, key=str):
                self.notification_repo.add(
                    Notification(
                        user_id=user_id,
                        project_id=notice.project_id,
                        notification_type=notice.notification_type.value,
                        title=notice.title(),
                        body=notice.body(),
                    )
                )
            await self.session.commit()
        except Exception as e:
            logger.warning(
                "Failed to record notifications",
                project_id=str(notice.project_id),
                to_status=notice.to_status.value,
                error=str(e),
            )
            with contextlib.suppress(Exception):
                await self.session.rollback()
            return 0

        if self.send_email:
            await self._queue_emails(notice, recipients)
        return len(recipients)

    async def notify_user(
        self,
        user_id: UUID,
        notification_type: NotificationType,
        title: str,
        body: str,
        project_id: UUID | None = None,
    ) -> bool:
        """Send a single notification outside of a status transition."""
        try:
            self.notification_repo.add(
                Notification(
                    user_id=user_id,
                    project_id=project_id,
                    notification_type=notification_type.value,
                    title=title,
                    body=body,
                )
            )
            await self.session.commit()
            return True
        except Exception as e:
            logger.warning("Failed to record notification", user_id=str(user_id), error=str(e))
            with contextlib.suppress(Exception):
                await self.session.rollback()
            return False

    async def deliver(self, notices: list[Notice]) -> None:
        for notice in notices:
            if isinstance(notice, TransitionNotice):
                await self.notify_transition(notice)
            else:
                await self.notify_user(
                    notice.user_id,
                    notice.notification_type,
                    notice.title,
                    notice.body,
                    project_id=notice.project_id,
                )

    async def _queue_emails(self, notice: TransitionNotice, recipients: set[UUID]) -> None:
        for user_id in recipients:
            try:
                user = await self.user_repo.get_by_id(user_id)
            except Exception as e:
                logger.warning("Failed to load notification recipient", error=str(e))
                continue
            if user is None or not user.is_active:
                continue
            task = asyncio.create_task(
                asyncio.to_thread(
                    send_project_update_email,
                    user.email,
                    user.full_name,
                    str(notice.project_id),
                    notice.project_number,
                    notice.title(),
                    notice.body(),
                )
            )
            _email_tasks.add(task)
            task.add_done_callback(_email_tasks.discard)

    async def list_for_user(
        self,
        user_id: UUID,
        unread_only: bool = False,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[Notification], str | None, bool]:
        return await self.notification_repo.list_for_user(user_id, unread_only, cursor, limit)

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        try:
            updated = await self.notification_repo.mark_read(notification_id, user_id)
            await self.session.commit()
            return updated
        except Exception:
            await self.session.rollback()
            raise


async def _deliver_detached(notices: list[Notice]) -> None:
    try:
        async with get_session() as session:
            notifier = NotificationService(
                NotificationRepository(session), UserRepository(session), session
            )
            await notifier.deliver(notices)
    except Exception as e:
        logger.warning(
            "Background notification delivery failed", notices=len(notices), error=str(e)
        )


def dispatch_in_background(notices: list[Notice]) -> None:
    """Deliver notices on their own session without blocking the caller."""
    if not notices:
        return
    task = asyncio.create_task(_deliver_detached(notices))
    _delivery_tasks.add(task)
    task.add_done_callback(_delivery_tasks.discard)
