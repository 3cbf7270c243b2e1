"""Shared machinery for services that move projects between statuses.

Every status change goes through TransitionRunner._transition: resolve the
edge in the transition table, apply it with a single check-and-set, append a
history row, and queue a notification that is sent after commit.

With defer_notices the committed notices are kept in an outbox instead, for
the caller to collect with take_outbox and deliver off the request path.
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.assignx.core.logging import get_logger
from src.assignx.lifecycle import (
    Actor,
    ConcurrentTransitionError,
    LifecycleError,
    PreconditionFailedError,
    ProjectEvent,
    ProjectNotFoundError,
    TransitionNotPermittedError,
    apply_event,
    next_actions,
)
from src.assignx.models.audit import AuditAction
from src.assignx.models.base import utc_now
from src.assignx.models.enums import PayoutStatus, ProjectStatus, Role
from src.assignx.models.project import Project, ProjectStatusHistory
from src.assignx.models.settlement import Payout
from src.assignx.repositories import (
    BlacklistRepository,
    DeliverableRepository,
    PayoutRepository,
    ProjectRepository,
    ProjectStatusHistoryRepository,
    QualityReportRepository,
    QuoteRepository,
    RevisionRepository,
    UserRepository,
)
from src.assignx.services.audit_service import AuditService
from src.assignx.services.notification_service import Notice, NotificationService, TransitionNotice

logger = get_logger(__name__)


@dataclass
class LifecycleRepositories:
    """Repositories sharing the business transaction of one lifecycle action."""

    projects: ProjectRepository
    history: ProjectStatusHistoryRepository
    deliverables: DeliverableRepository
    revisions: RevisionRepository
    quotes: QuoteRepository
    reports: QualityReportRepository
    blacklist: BlacklistRepository
    payouts: PayoutRepository
    users: UserRepository

    @classmethod
    def from_session(cls, session: AsyncSession) -> "LifecycleRepositories":
        return cls(
            projects=ProjectRepository(session),
            history=ProjectStatusHistoryRepository(session),
            deliverables=DeliverableRepository(session),
            revisions=RevisionRepository(session),
            quotes=QuoteRepository(session),
            reports=QualityReportRepository(session),
            blacklist=BlacklistRepository(session),
            payouts=PayoutRepository(session),
            users=UserRepository(session),
        )


class TransitionRunner:
    def __init__(
        self,
        repos: LifecycleRepositories,
        session: AsyncSession,
        notifier: NotificationService | None = None,
        audit: AuditService | None = None,
        clock: Callable[[], datetime] = utc_now,
        defer_notices: bool = False,
    ):
        self.repos = repos
        self.session = session
        self.notifier = notifier
        self.audit = audit
        self.clock = clock
        self.defer_notices = defer_notices
        self._pending_notices: list[Notice] = []
        self._outbox: list[Notice] = []

    @asynccontextmanager
    async def _transaction(
        self,
        action: str,
        actor: Actor,
        project_id: UUID | None = None,
    ) -> AsyncGenerator[None]:
        """Commit everything done inside the block, or nothing.

        Notifications queued by transitions are dispatched only after commit.
        Denied actions are written to the audit log.
        """
        self._pending_notices = []
        try:
            yield
            await self.session.commit()
        except LifecycleError as e:
            await self.session.rollback()
            self._pending_notices = []
            if isinstance(e, TransitionNotPermittedError):
                await self._audit_denied(action, actor, project_id, e)
            raise
        except Exception as e:
            await self.session.rollback()
            self._pending_notices = []
            logger.error(
                "Lifecycle action failed",
                action=action,
                project_id=str(project_id) if project_id else None,
                error=str(e),
            )
            raise

        notices, self._pending_notices = self._pending_notices, []
        await self._send(notices)

    async def _send(self, notices: list[Notice]) -> None:
        if self.defer_notices:
            self._outbox.extend(notices)
        elif self.notifier is not None and notices:
            await self.notifier.deliver(notices)

    def take_outbox(self) -> list[Notice]:
        """Committed notices held back by defer_notices. Clears the outbox."""
        notices, self._outbox = self._outbox, []
        return notices

    async def _load(self, project_id: UUID) -> Project:
        project = await self.repos.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    def _ensure_party(
        self,
        project: Project,
        actor: Actor,
        *,
        allow_unclaimed: bool = False,
        allow_proposed: bool = False,
    ) -> None:
        """Only the project's own client, supervisor or doer may act on it."""
        if actor.is_system:
            return
        if actor.role == Role.CLIENT:
            allowed = project.client_id == actor.id
        elif actor.role == Role.SUPERVISOR:
            allowed = project.supervisor_id == actor.id or (
                allow_unclaimed and project.supervisor_id is None
            )
        else:
            allowed = project.doer_id == actor.id or (
                allow_proposed and project.proposed_doer_id == actor.id
            )
        if not allowed:
            raise TransitionNotPermittedError(
                f"User is not the {actor.role.value} of project {project.project_number}",
                reason_code="not_a_party",
                current_status=project.status,
            )

    async def _transition(
        self,
        project: Project,
        event: ProjectEvent,
        actor: Actor,
        values: dict[str, Any] | None = None,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
        due_before: datetime | None = None,
    ) -> Project:
        """Apply one edge of the state machine to `project`.

        Raises:
            InvalidTransitionError: No such edge from the current status.
            TransitionNotPermittedError: The actor's role may not fire it.
            ConcurrentTransitionError: The status changed since it was read.
        """
        current = ProjectStatus(project.status)
        target = apply_event(current, event, actor.role)

        updated = await self.repos.projects.compare_and_set_status(
            project.id, current, target, actor.role, values=values, due_before=due_before
        )
        if updated is None:
            stored = await self.repos.projects.get_by_id(project.id)
            stored_status = stored.status if stored else None
            raise ConcurrentTransitionError(
                "Project state already changed",
                current_status=stored_status,
                attempted=event.value,
                next_actions=next_actions(stored_status, actor.role) if stored_status else (),
            )

        now = self.clock()
        self.repos.history.add(
            ProjectStatusHistory(
                project_id=project.id,
                from_status=current.value,
                to_status=target.value,
                event=event.value,
                changed_by=actor.id,
                changed_by_role=actor.role.value,
                notes=notes,
                extra=metadata,
                created_at=now,
            )
        )
        self._pending_notices.append(
            TransitionNotice(
                project_id=updated.id,
                project_number=updated.project_number,
                from_status=current,
                to_status=target,
                actor_id=actor.id,
                actor_role=actor.role,
                occurred_at=now,
                recipients=_participants(updated),
                notes=notes,
            )
        )
        logger.info(
            "Project transitioned",
            project_id=str(project.id),
            project_number=updated.project_number,
            transition=event.value,
            from_status=current.value,
            to_status=target.value,
            actor_role=actor.role.value,
        )
        return updated

    async def _settle(self, project: Project) -> int:
        """Create the doer and supervisor payouts of a completed project.

        Safe to repeat: at most one payout exists per project and role.
        """
        if project.doer_payout is None or project.supervisor_commission is None:
            raise PreconditionFailedError(
                "Project has no frozen settlement",
                reason_code="settlement_missing",
                current_status=project.status,
            )
        created = 0
        for recipient_id, role, amount in (
            (project.doer_id, Role.DOER, project.doer_payout),
            (project.supervisor_id, Role.SUPERVISOR, project.supervisor_commission),
        ):
            if recipient_id is None:
                continue
            payout = Payout(
                project_id=project.id,
                recipient_id=recipient_id,
                recipient_role=role.value,
                amount=amount,
                status=PayoutStatus.PENDING.value,
            )
            if await self.repos.payouts.create_if_absent(payout):
                created += 1
        return created

    async def _audit_denied(
        self,
        action: str,
        actor: Actor,
        project_id: UUID | None,
        error: LifecycleError,
    ) -> None:
        if self.audit is None:
            return
        await self.audit.log_failure(
            AuditAction.TRANSITION_DENIED,
            entity_type="project",
            entity_id=project_id,
            user_id=actor.id,
            error_message=error.message,
            changes={
                "action": action,
                "role": actor.role.value,
                "reason_code": error.reason_code,
                "current_status": error.current_status,
            },
        )


def _participants(project: Project) -> frozenset[UUID]:
    return frozenset(
        p for p in (project.client_id, project.supervisor_id, project.doer_id) if p is not None
    )


def require_reason(reason: str | None, project: Project, attempted: str) -> str:
    """Return the stripped reason, or raise if it is blank."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise PreconditionFailedError(
            "A written reason is required",
            reason_code="reason_required",
            current_status=project.status,
            attempted=attempted,
        )
    return cleaned
