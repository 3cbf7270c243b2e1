"""Quality gate - the supervisor checkpoint between submission and delivery."""

from decimal import Decimal
from uuid import UUID

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger
from src.assignx.lifecycle import (
    Actor,
    InvalidTransitionError,
    PreconditionFailedError,
    ProjectEvent,
    next_actions,
)
from src.assignx.models.enums import ProjectStatus, ReportResult, ReportType, RevisionStatus
from src.assignx.models.project import Project
from src.assignx.models.quality import ProjectRevision, QualityReport
from src.assignx.services.lifecycle_service import auto_approve_time
from src.assignx.services.transitions import TransitionRunner, require_reason

logger = get_logger(__name__)

# Percentages above which a check is recorded as failed
PASS_THRESHOLDS: dict[ReportType, Decimal] = {
    ReportType.PLAGIARISM: Decimal("15"),
    ReportType.AI_DETECTION: Decimal("20"),
}

SCORABLE_STATUSES = frozenset({ProjectStatus.SUBMITTED_FOR_QC, ProjectStatus.QC_IN_PROGRESS})


def report_result(report_type: ReportType, score: Decimal | None) -> ReportResult:
    if score is None:
        return ReportResult.NOT_CHECKED
    return ReportResult.PASS if score <= PASS_THRESHOLDS[report_type] else ReportResult.FAIL


class QualityGateService(TransitionRunner):
    """Supervisor QC actions: scoring, approval and rejection."""

    async def start_qc(self, project_id: UUID, actor: Actor) -> Project:
        async with self._transaction("start_qc", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            project = await self._transition(project, ProjectEvent.START_QC, actor)
        return project

    async def record_quality_scores(
        self,
        project_id: UUID,
        actor: Actor,
        plagiarism_score: Decimal | None,
        ai_score: Decimal | None,
        notes: str | None = None,
        tool_used: str | None = None,
    ) -> list[QualityReport]:
        """Record both checks for the current submission.

        A missing score is recorded as `not_checked`; it still counts as
        recorded for approval purposes.
        """
        async with self._transaction("record_quality_scores", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            status = ProjectStatus(project.status)
            if status not in SCORABLE_STATUSES:
                raise InvalidTransitionError(
                    "Scores can only be recorded during quality check",
                    current_status=project.status,
                    attempted="record_quality_scores",
                    next_actions=next_actions(status, actor.role),
                )

            now = self.clock()
            reports = [
                QualityReport(
                    project_id=project.id,
                    report_type=report_type.value,
                    score=score,
                    result=report_result(report_type, score).value,
                    tool_used=tool_used,
                    recorded_by=actor.id,  # type: ignore[arg-type]
                    created_at=now,
                )
                for report_type, score in (
                    (ReportType.PLAGIARISM, plagiarism_score),
                    (ReportType.AI_DETECTION, ai_score),
                )
            ]
            for report in reports:
                self.repos.reports.add(report)

            values: dict[str, object] = {"plagiarism_score": plagiarism_score, "ai_score": ai_score}
            if notes is not None:
                values["qc_notes"] = notes
            await self.repos.projects.update_fields(project.id, actor.role, values, expected=status)

        logger.info(
            "Quality scores recorded",
            project_id=str(project_id),
            plagiarism=reports[0].result,
            ai_detection=reports[1].result,
        )
        return reports

    async def approve_qc(self, project_id: UUID, actor: Actor, notes: str | None = None) -> Project:
        """Approve the submission and deliver it to the client.

        Raises:
            PreconditionFailedError: Either check has not been recorded for
                the latest submission (reason `qc_scores_missing`).
        """
        async with self._transaction("approve_qc", actor, project_id):
            project = await self._claim(await self._load(project_id), actor)

            recorded = {
                report.report_type
                for report in await self.repos.reports.list_since(
                    project.id, project.submitted_for_qc_at
                )
            }
            missing = sorted({t.value for t in ReportType} - recorded)
            if missing:
                raise PreconditionFailedError(
                    f"Missing quality reports: {', '.join(missing)}",
                    reason_code="qc_scores_missing",
                    current_status=project.status,
                    attempted=ProjectEvent.APPROVE_QC.value,
                )

            values = {"qc_notes": notes} if notes is not None else None
            project = await self._transition(
                project, ProjectEvent.APPROVE_QC, actor, values=values, notes=notes
            )

            delivered_at = self.clock()
            project = await self._transition(
                project,
                ProjectEvent.DELIVER,
                Actor.system(),
                values={
                    "delivered_at": delivered_at,
                    "auto_approve_at": auto_approve_time(
                        delivered_at, project.deadline, get_settings().auto_approve_grace_hours
                    ),
                },
            )
        return project

    async def reject_qc(self, project_id: UUID, actor: Actor, reason: str) -> Project:
        """Send the work back to the doer with the supervisor's reason."""
        async with self._transaction("reject_qc", actor, project_id):
            project = await self._claim(await self._load(project_id), actor)
            reason = require_reason(reason, project, ProjectEvent.REJECT_QC.value)

            project = await self._transition(
                project,
                ProjectEvent.REJECT_QC,
                actor,
                values={"qc_notes": reason},
                notes=reason,
            )
            project = await self._open_revision(project, actor, reason, Actor.system())
        return project

    async def request_revision_after_rejection(
        self, project_id: UUID, actor: Actor, feedback: str
    ) -> Project:
        """Move a project resting at qc_rejected into revision."""
        async with self._transaction("request_revision", actor, project_id):
            project = await self._load(project_id)
            self._ensure_party(project, actor)
            feedback = require_reason(feedback, project, ProjectEvent.REQUEST_REVISION.value)
            project = await self._open_revision(project, actor, feedback, actor)
        return project

    async def _claim(self, project: Project, actor: Actor) -> Project:
        """Start QC implicitly when deciding straight from the submission queue."""
        self._ensure_party(project, actor)
        if project.status == ProjectStatus.SUBMITTED_FOR_QC.value:
            project = await self._transition(project, ProjectEvent.START_QC, actor)
        return project

    async def _open_revision(
        self, project: Project, requested_by: Actor, feedback: str, transition_actor: Actor
    ) -> Project:
        project = await self._transition(
            project, ProjectEvent.REQUEST_REVISION, transition_actor, notes=feedback
        )
        self.repos.revisions.add(
            ProjectRevision(
                project_id=project.id,
                revision_number=await self.repos.revisions.next_revision_number(project.id),
                feedback=feedback,
                requested_by=requested_by.id,
                requested_by_role=requested_by.role.value,
                status=RevisionStatus.PENDING.value,
            )
        )
        return project
