"""Project lifecycle service - the status transition authority.

Each public method is one user-visible action. It runs in a single
transaction, may chain several state-machine edges (e.g. a doer's first
upload also starts work), and either commits all of its writes or none.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger
from src.assignx.lifecycle import (
    PAID_STATES,
    TERMINAL_STATES,
    WORK_STARTED_STATES,
    Actor,
    InvalidTransitionError,
    LifecycleError,
    PreconditionFailedError,
    ProjectEvent,
    ProjectNotFoundError,
    TransitionNotPermittedError,
    calculate_settlement,
    default_rate_and_count,
    next_actions,
    split_quote,
    to_money,
    urgency_tier_for,
)
from src.assignx.models.audit import AuditAction
from src.assignx.models.base import to_utc_naive
from src.assignx.models.enums import (
    ComplexityTier,
    NotificationType,
    ProjectStatus,
    RefundEligibility,
    RevisionStatus,
    Role,
    UrgencyTier,
)
from src.assignx.models.project import Project, ProjectStatusHistory
from src.assignx.models.quality import ProjectDeliverable, ProjectRevision
from src.assignx.models.settlement import ProjectQuote
from src.assignx.schemas.project import ProjectCreate, ProjectUpdate
from src.assignx.services.notification_service import UserNotice
from src.assignx.services.transitions import TransitionRunner, require_reason

logger = get_logger(__name__)

UPLOAD_STATUSES = frozenset(
    {ProjectStatus.ASSIGNED, ProjectStatus.IN_PROGRESS, ProjectStatus.IN_REVISION}
)
QC_PENDING_STATUSES = frozenset({ProjectStatus.SUBMITTED_FOR_QC, ProjectStatus.QC_IN_PROGRESS})


def refund_eligibility_for(status: ProjectStatus) -> RefundEligibility:
    """Nothing was paid before `paid`; once work has started only a partial refund applies."""
    if status not in PAID_STATES:
        return RefundEligibility.NONE
    if status in WORK_STARTED_STATES:
        return RefundEligibility.PARTIAL
    return RefundEligibility.FULL


def auto_approve_time(delivered_at: datetime, deadline: datetime | None, grace_hours: int) -> datetime:
    """Clients always get the full grace period, counted from the later of delivery and deadline."""
    start = max(delivered_at, deadline) if deadline else delivered_at
    return start + timedelta(hours=grace_hours)


class ProjectLifecycleService(TransitionRunner):
    """Client, supervisor and doer actions on a project."""

    # ---- reads ---------------------------------------------------------

    async def get_project(self, project_id: UUID, actor: Actor) -> Project:
        """Load a project the actor may see.

        Projects the actor is not a party to are reported as missing.
        """
        project = await self._load(project_id)
        try:
            self._ensure_party(
                project,
                actor,
                allow_unclaimed=project.status == ProjectStatus.SUBMITTED.value,
                allow_proposed=True,
            )
        except TransitionNotPermittedError as e:
            raise ProjectNotFoundError(f"Project {project_id} not found") from e
        return project

    async def list_projects(
        self,
        actor: Actor,
        status: ProjectStatus | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[Project], str | None, bool]:
        if actor.id is None:
            raise TransitionNotPermittedError(
                "The system actor has no projects of its own", reason_code="not_a_party"
            )
        return await self.repos.projects.list_for_user(actor.id, actor.role, status, cursor, limit)

    async def get_history(self, project_id: UUID, actor: Actor) -> list[ProjectStatusHistory]:
        project = await self.get_project(project_id, actor)
        return await self.repos.history.list_by_project(project.id)

    async def get_next_actions(self, project_id: UUID, actor: Actor) -> list[str]:
        project = await self.get_project(project_id, actor)
        return next_actions(project.status, actor.role)

    async def list_deliverables(self, project_id: UUID, actor: Actor) -> list[ProjectDeliverable]:
        project = await self.get_project(project_id, actor)
        return await self.repos.deliverables.list_by_project(project.id)

    async def list_revisions(self, project_id: UUID, actor: Actor) -> list[ProjectRevision]:
        project = await self.get_project(project_id, actor)
        return await self.repos.revisions.list_by_project(project.id)

    # ---- client --------------------------------------------------------

    async def create_project(self, actor: Actor, data: ProjectCreate) -> Project:
        """Create a draft project owned by the acting client."""
        if actor.role != Role.CLIENT or actor.id is None:
            raise TransitionNotPermittedError("Only clients may create projects")

        async with self._transaction("create_project", actor):
            project = Project(
                project_number=await self.repos.projects.next_project_number(),
                client_id=actor.id,
                service_type=data.service_type.value,
                title=data.title,
                subject=data.subject,
                description=data.description,
                word_count=data.word_count,
                page_count=data.page_count,
                reference_style=data.reference_style,
                deadline=data.deadline,
                original_deadline=data.deadline,
                status=ProjectStatus.DRAFT.value,
            )
            self.repos.projects.add(project)
            self.repos.history.add(
                ProjectStatusHistory(
                    project_id=project.id,
                    from_status=None,
                    to_status=ProjectStatus.DRAFT.value,
                    event="create",
                    changed_by=actor.id,
                    changed_by_role=actor.role.value,
                    created_at=self.clock(),
                )
            )
        logger.info("Project created", project_id=str(project.id), project_number=project.project_number)
        return project

    async def update_draft(self, project_id: UUID, actor: Actor, data: ProjectUpdate) -> Project:
        """Edit the order details while the project is still a draft."""
        async with self._transaction("update_draft", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            if project.status != ProjectStatus.DRAFT.value:
                raise InvalidTransitionError(
                    "Only draft projects can be edited",
                    current_status=project.status,
                    attempted="update",
                    next_actions=next_actions(project.status, actor.role),
                )
            values: dict[str, Any] = data.model_dump(exclude_unset=True)
            if "service_type" in values and values["service_type"] is not None:
                values["service_type"] = values["service_type"].value
            updated = await self.repos.projects.update_fields(
                project.id, actor.role, values, expected=ProjectStatus.DRAFT
            )
            if updated is None:
                raise InvalidTransitionError(
                    "Only draft projects can be edited",
                    current_status=(await self._load(project_id)).status,
                    attempted="update",
                )
        return updated

    async def submit(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("submit", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            project = await self._transition(project, ProjectEvent.SUBMIT, actor)
        return project

    async def request_payment(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("request_payment", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            if project.client_quote is None:
                raise PreconditionFailedError(
                    "Project has not been quoted",
                    reason_code="settlement_missing",
                    current_status=project.status,
                    attempted=ProjectEvent.REQUEST_PAYMENT.value,
                )
            project = await self._transition(project, ProjectEvent.REQUEST_PAYMENT, actor)
        return project

    async def approve_delivery(
        self,
        project_id: UUID,
        actor: Actor,
        grade: int | None = None,
        feedback: str | None = None,
    ) -> Project:
        """Client accepts the delivered work; the project completes and payouts are created."""
        async with self._transaction("approve_delivery", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            now = self.clock()
            project = await self._transition(
                project,
                ProjectEvent.APPROVE_DELIVERY,
                actor,
                values={
                    "client_approved": True,
                    "client_approved_at": now,
                    "client_grade": grade,
                    "client_feedback": feedback,
                    "completed_at": now,
                    "auto_approve_at": None,
                },
                notes=feedback,
            )
            await self._settle(project)
        return project

    async def request_revision(self, project_id: UUID, actor: Actor, feedback: str) -> Project:
        """Client disputes the delivery. Clears the auto-approval timer."""
        async with self._transaction("request_revision", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            feedback = require_reason(feedback, project, ProjectEvent.REQUEST_REVISION.value)
            project = await self._transition(
                project,
                ProjectEvent.REQUEST_REVISION,
                actor,
                values={"auto_approve_at": None},
                notes=feedback,
            )
            self.repos.revisions.add(
                ProjectRevision(
                    project_id=project.id,
                    revision_number=await self.repos.revisions.next_revision_number(project.id),
                    feedback=feedback,
                    requested_by=actor.id,
                    requested_by_role=actor.role.value,
                )
            )
        return project

    # ---- supervisor ----------------------------------------------------

    async def start_analysis(self, project_id: UUID, actor: Actor) -> Project:
        """Supervisor claims a submitted project."""
        async with self._transaction("start_analysis", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor, allow_unclaimed=True)
            project = await self._transition(
                project,
                ProjectEvent.START_ANALYSIS,
                actor,
                values={"supervisor_id": actor.id, "supervisor_assigned_at": self.clock()},
            )
        return project

    async def quote(
        self,
        project_id: UUID,
        actor: Actor,
        complexity_tier: ComplexityTier,
        base_rate: Decimal | None = None,
        unit_count: int | None = None,
        urgency_tier: UrgencyTier | None = None,
    ) -> Project:
        """Price the project and record the computed settlement.

        Rate and unit count default to the configured pricing for the
        project's size; urgency defaults to the tier implied by the deadline.
        """
        async with self._transaction("quote", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)

            settings = get_settings()
            default_rate, default_count = default_rate_and_count(
                project.word_count,
                project.page_count,
                price_per_word=settings.price_per_word,
                price_per_page=settings.price_per_page,
                minimum_base_price=settings.minimum_base_price,
            )
            rate = base_rate if base_rate is not None else default_rate
            count = unit_count if unit_count is not None else default_count
            urgency = urgency_tier or urgency_tier_for(project.deadline, self.clock())
            settlement = calculate_settlement(rate, count, urgency, complexity_tier)
            if settlement.client_quote <= 0:
                raise PreconditionFailedError(
                    "Quote must be greater than zero",
                    reason_code="settlement_missing",
                    current_status=project.status,
                    attempted=ProjectEvent.QUOTE.value,
                )

            project = await self._transition(
                project,
                ProjectEvent.QUOTE,
                actor,
                values={
                    "client_quote": settlement.client_quote,
                    "urgency_tier": urgency.value,
                    "complexity_tier": complexity_tier.value,
                },
                metadata=settlement.as_dict(),
            )
            self.repos.quotes.add(
                ProjectQuote(
                    project_id=project.id,
                    base_rate=to_money(rate),
                    unit_count=count,
                    urgency_tier=urgency.value,
                    complexity_tier=complexity_tier.value,
                    client_quote=settlement.client_quote,
                    doer_amount=settlement.doer_payout,
                    supervisor_amount=settlement.supervisor_commission,
                    platform_amount=settlement.platform_fee,
                    quoted_by=actor.id,  # type: ignore[arg-type]
                )
            )
        return project

    async def start_assignment(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("start_assignment", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            project = await self._transition(project, ProjectEvent.START_ASSIGNMENT, actor)
        return project

    async def propose_doer(self, project_id: UUID, actor: Actor, doer_id: UUID) -> Project:
        """Offer the task to a doer, who then accepts it."""
        async with self._transaction("propose_doer", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            if project.status != ProjectStatus.ASSIGNING.value:
                raise InvalidTransitionError(
                    "Doers can only be proposed while assigning",
                    current_status=project.status,
                    attempted="propose_doer",
                    next_actions=next_actions(project.status, actor.role),
                )
            await self._check_doer_assignable(project, doer_id)
            updated = await self.repos.projects.update_fields(
                project.id,
                actor.role,
                {"proposed_doer_id": doer_id},
                expected=ProjectStatus.ASSIGNING,
            )
            if updated is None:
                raise InvalidTransitionError(
                    "Project is no longer assigning",
                    reason_code="state_changed",
                    attempted="propose_doer",
                )
        await self._send(
            [
                UserNotice(
                    user_id=doer_id,
                    notification_type=NotificationType.TASK_AVAILABLE,
                    title=f"New task {updated.project_number}",
                    body=f"You have been offered '{updated.title}'.",
                    project_id=updated.id,
                )
            ]
        )
        return updated

    async def assign_doer_override(self, project_id: UUID, actor: Actor, doer_id: UUID) -> Project:
        """Supervisor assigns a doer directly, without waiting for acceptance."""
        async with self._transaction("assign_doer", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            await self._check_doer_assignable(project, doer_id)
            project = await self._transition(
                project,
                ProjectEvent.ASSIGN_DOER,
                actor,
                values={
                    "doer_id": doer_id,
                    "doer_assigned_at": self.clock(),
                    "proposed_doer_id": None,
                },
                metadata={"override": True},
            )
        return project

    async def cancel(self, project_id: UUID, actor: Actor, reason: str) -> Project:
        """Cancel a non-terminal project. The refund owed depends on how far it got."""
        async with self._transaction("cancel", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            reason = require_reason(reason, project, ProjectEvent.CANCEL.value)
            eligibility = refund_eligibility_for(ProjectStatus(project.status))
            project = await self._transition(
                project,
                ProjectEvent.CANCEL,
                actor,
                values={
                    "cancelled_at": self.clock(),
                    "cancelled_by": actor.id,
                    "cancellation_reason": reason,
                    "refund_eligibility": eligibility.value,
                },
                notes=reason,
                metadata={"refund_eligibility": eligibility.value},
            )
        return project

    async def refund(self, project_id: UUID, actor: Actor, reason: str) -> Project:
        """Explicit dispute resolution on a paid project."""
        async with self._transaction("refund", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            reason = require_reason(reason, project, ProjectEvent.REFUND.value)
            eligibility = refund_eligibility_for(ProjectStatus(project.status))
            project = await self._transition(
                project,
                ProjectEvent.REFUND,
                actor,
                values={
                    "cancelled_at": self.clock(),
                    "cancelled_by": actor.id,
                    "cancellation_reason": reason,
                    "refund_eligibility": eligibility.value,
                },
                notes=reason,
                metadata={"refund_eligibility": eligibility.value},
            )
        return project

    async def extend_deadline(
        self,
        project_id: UUID,
        actor: Actor,
        new_deadline: datetime,
        reason: str,
    ) -> Project:
        async with self._transaction("extend_deadline", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            _require_supervisor(project, actor, "extend_deadline")
            status = ProjectStatus(project.status)
            if status in TERMINAL_STATES or status == ProjectStatus.DELIVERED:
                raise InvalidTransitionError(
                    "Deadline can no longer be extended",
                    current_status=project.status,
                    attempted="extend_deadline",
                    next_actions=next_actions(status, actor.role),
                )
            reason = require_reason(reason, project, "extend_deadline")
            new_deadline = to_utc_naive(new_deadline)
            if project.deadline is not None and new_deadline <= project.deadline:
                raise PreconditionFailedError(
                    "New deadline must be later than the current one",
                    reason_code="deadline_not_later",
                    current_status=project.status,
                    attempted="extend_deadline",
                )
            previous = project.deadline
            updated = await self.repos.projects.update_fields(
                project.id,
                actor.role,
                {
                    "deadline": new_deadline,
                    "original_deadline": project.original_deadline or previous,
                    "deadline_extended": True,
                    "deadline_extension_reason": reason,
                },
                expected=status,
            )
            if updated is None:
                raise InvalidTransitionError(
                    "Project state already changed",
                    reason_code="state_changed",
                    attempted="extend_deadline",
                )
        if self.audit is not None:
            await self.audit.log_success(
                AuditAction.DEADLINE_EXTENDED,
                entity_type="project",
                entity_id=project.id,
                user_id=actor.id,
                changes={
                    "deadline": {
                        "old": previous.isoformat() if previous else None,
                        "new": new_deadline.isoformat(),
                    },
                    "reason": reason,
                },
            )
        return updated

    async def override_settlement(
        self,
        project_id: UUID,
        actor: Actor,
        client_quote: Decimal,
        reason: str,
    ) -> Project:
        """Reprice a paid project. The only way to change a frozen split; always audited."""
        async with self._transaction("override_settlement", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            _require_supervisor(project, actor, "override_settlement")
            status = ProjectStatus(project.status)
            if status not in PAID_STATES or status in TERMINAL_STATES:
                raise PreconditionFailedError(
                    "Only paid, active projects can be repriced",
                    reason_code="not_paid",
                    current_status=project.status,
                    attempted="override_settlement",
                )
            reason = require_reason(reason, project, "override_settlement")
            after = split_quote(client_quote)
            updated = await self.repos.projects.update_fields(
                project.id,
                actor.role,
                {
                    "client_quote": after.client_quote,
                    "doer_payout": after.doer_payout,
                    "supervisor_commission": after.supervisor_commission,
                    "platform_fee": after.platform_fee,
                },
                expected=status,
            )
            if updated is None:
                raise InvalidTransitionError(
                    "Project state already changed",
                    reason_code="state_changed",
                    attempted="override_settlement",
                )
        logger.warning(
            "Settlement overridden",
            project_id=str(project.id),
            old_quote=str(project.client_quote),
            new_quote=str(after.client_quote),
        )
        if self.audit is not None:
            await self.audit.log_success(
                AuditAction.SETTLEMENT_OVERRIDE,
                entity_type="project",
                entity_id=project.id,
                user_id=actor.id,
                changes={
                    "before": {
                        "client_quote": str(project.client_quote),
                        "doer_payout": str(project.doer_payout),
                        "supervisor_commission": str(project.supervisor_commission),
                        "platform_fee": str(project.platform_fee),
                    },
                    "after": after.as_dict(),
                    "reason": reason,
                },
            )
        return updated

    # ---- doer ----------------------------------------------------------

    async def accept_assignment(self, project_id: UUID, actor: Actor) -> Project:
        """The proposed doer accepts the task."""
        async with self._transaction("accept_assignment", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor, allow_proposed=True)
            if actor.id is None:
                raise TransitionNotPermittedError(
                    "Only the proposed doer may accept a task",
                    reason_code="not_a_party",
                    current_status=project.status,
                    attempted=ProjectEvent.ASSIGN_DOER.value,
                )
            if project.proposed_doer_id != actor.id:
                raise PreconditionFailedError(
                    "This task was not offered to you",
                    reason_code="doer_not_proposed",
                    current_status=project.status,
                    attempted=ProjectEvent.ASSIGN_DOER.value,
                )
            await self._check_doer_assignable(project, actor.id)
            project = await self._transition(
                project,
                ProjectEvent.ASSIGN_DOER,
                actor,
                values={
                    "doer_id": actor.id,
                    "doer_assigned_at": self.clock(),
                    "proposed_doer_id": None,
                },
            )
        return project

    async def start_work(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("start_work", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            project = await self._start_work(project, actor)
        return project

    async def add_deliverable(
        self,
        project_id: UUID,
        actor: Actor,
        file_url: str,
        file_name: str,
        file_type: str | None = None,
        file_size_bytes: int | None = None,
    ) -> ProjectDeliverable:
        """Register an uploaded file. Re-registering the same URL returns the existing row.

        The first upload on an assigned project starts work.
        """
        async with self._transaction("add_deliverable", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            status = ProjectStatus(project.status)
            if status not in UPLOAD_STATUSES:
                raise InvalidTransitionError(
                    "Deliverables cannot be uploaded in this status",
                    current_status=project.status,
                    attempted="add_deliverable",
                    next_actions=next_actions(status, actor.role),
                )

            existing = await self.repos.deliverables.get_by_file_url(project.id, file_url)
            if existing is not None:
                return existing

            deliverable = ProjectDeliverable(
                project_id=project.id,
                file_url=file_url,
                file_name=file_name,
                file_type=file_type,
                file_size_bytes=file_size_bytes,
                version=await self.repos.deliverables.count_by_project(project.id) + 1,
                uploaded_by=actor.id,  # type: ignore[arg-type]
            )
            self.repos.deliverables.add(deliverable)

            if status == ProjectStatus.ASSIGNED:
                await self._start_work(project, Actor.system())
        return deliverable

    async def submit_for_qc(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("submit_for_qc", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            if ProjectStatus(project.status) in QC_PENDING_STATUSES:
                raise InvalidTransitionError(
                    "Work is already awaiting quality check",
                    reason_code="duplicate_submission",
                    current_status=project.status,
                    attempted=ProjectEvent.SUBMIT_FOR_QC.value,
                    next_actions=next_actions(project.status, actor.role),
                )
            if await self.repos.deliverables.count_by_project(project.id) < 1:
                raise PreconditionFailedError(
                    "Upload at least one deliverable before submitting",
                    reason_code="deliverable_missing",
                    current_status=project.status,
                    attempted=ProjectEvent.SUBMIT_FOR_QC.value,
                )

            was_revision = project.status == ProjectStatus.IN_REVISION.value
            now = self.clock()
            late = project.deadline is not None and now > project.deadline
            project = await self._transition(
                project,
                ProjectEvent.SUBMIT_FOR_QC,
                actor,
                values={"submitted_for_qc_at": now, "submitted_late": late},
                metadata={"late": late} if late else None,
            )
            if was_revision:
                revision = await self.repos.revisions.get_open(project.id)
                if revision is not None:
                    revision.status = RevisionStatus.COMPLETED.value
                    revision.completed_at = now
                    self.repos.revisions.add(revision)
        return project

    async def begin_revision(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("begin_revision", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            project = await self._transition(project, ProjectEvent.BEGIN_REVISION, actor)
            revision = await self.repos.revisions.get_open(project.id)
            if revision is not None:
                revision.status = RevisionStatus.IN_PROGRESS.value
                self.repos.revisions.add(revision)
        return project

    # ---- system --------------------------------------------------------

    async def confirm_payment(
        self,
        project_id: UUID,
        amount: Decimal,
        payment_id: str,
    ) -> Project:
        """Payment collaborator reports a settled charge.

        The amount must equal the stored quote to the cent. On success the
        quoted split is frozen onto the project. A retry for a payment that
        was already applied returns the project unchanged.
        """
        actor = Actor.system()
        project = await self._load(project_id)
        if project.payment_id == payment_id and project.status != ProjectStatus.PAYMENT_PENDING.value:
            return project

        try:
            async with self._transaction("confirm_payment", actor, project_id):
                project = await self._load(project_id)
                quote = await self.repos.quotes.get_latest(project.id)
                if project.client_quote is None or quote is None:
                    raise PreconditionFailedError(
                        "Project has no quote to pay",
                        reason_code="settlement_missing",
                        current_status=project.status,
                        attempted=ProjectEvent.CONFIRM_PAYMENT.value,
                    )
                if to_money(amount) != to_money(project.client_quote):
                    raise PreconditionFailedError(
                        "Paid amount does not match the quote",
                        reason_code="payment_amount_mismatch",
                        current_status=project.status,
                        attempted=ProjectEvent.CONFIRM_PAYMENT.value,
                    )
                # Freeze the split the client was quoted
                project = await self._transition(
                    project,
                    ProjectEvent.CONFIRM_PAYMENT,
                    actor,
                    values={
                        "paid_at": self.clock(),
                        "payment_id": payment_id,
                        "doer_payout": quote.doer_amount,
                        "supervisor_commission": quote.supervisor_amount,
                        "platform_fee": quote.platform_amount,
                    },
                    metadata={
                        "payment_id": payment_id,
                        "client_quote": str(quote.client_quote),
                        "doer_payout": str(quote.doer_amount),
                        "supervisor_commission": str(quote.supervisor_amount),
                        "platform_fee": str(quote.platform_amount),
                    },
                )
        except LifecycleError as e:
            # Every refused payment is audited, whatever the reason
            if self.audit is not None:
                await self.audit.log_failure(
                    AuditAction.PAYMENT_REJECTED,
                    entity_type="project",
                    entity_id=project_id,
                    error_message=e.message,
                    changes={
                        "amount": str(amount),
                        "expected": str(project.client_quote),
                        "payment_id": payment_id,
                        "reason_code": e.reason_code,
                        "current_status": e.current_status,
                    },
                )
            raise

        if self.audit is not None:
            await self.audit.log_success(
                AuditAction.PAYMENT_CONFIRMED,
                entity_type="project",
                entity_id=project.id,
                changes={"amount": str(amount), "payment_id": payment_id},
            )
        return project

    # ---- helpers -------------------------------------------------------

    async def _start_work(self, project: Project, actor: Actor) -> Project:
        if project.supervisor_id is None or project.doer_id is None:
            raise PreconditionFailedError(
                "Both a supervisor and a doer must be assigned",
                reason_code="parties_missing",
                current_status=project.status,
                attempted=ProjectEvent.START_WORK.value,
            )
        return await self._transition(project, ProjectEvent.START_WORK, actor)

    async def _check_doer_assignable(self, project: Project, doer_id: UUID) -> None:
        doer = await self.repos.users.get_by_id(doer_id)
        if doer is None or doer.role != Role.DOER.value or not doer.is_active:
            raise PreconditionFailedError(
                "User is not an active doer",
                reason_code="invalid_doer",
                current_status=project.status,
                attempted=ProjectEvent.ASSIGN_DOER.value,
            )
        if project.supervisor_id is not None and await self.repos.blacklist.is_blacklisted(
            project.supervisor_id, doer_id
        ):
            raise PreconditionFailedError(
                "Doer is blacklisted by the project's supervisor",
                reason_code="doer_blacklisted",
                current_status=project.status,
                attempted=ProjectEvent.ASSIGN_DOER.value,
            )


def _require_supervisor(project: Project, actor: Actor, attempted: str) -> None:
    if actor.role != Role.SUPERVISOR:
        raise TransitionNotPermittedError(
            f"Only the supervisor may {attempted.replace('_', ' ')}",
            current_status=project.status,
            attempted=attempted,
        )
