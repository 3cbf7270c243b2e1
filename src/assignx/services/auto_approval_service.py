"""Auto-approval sweep for delivered projects the client never acted on."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger
from src.assignx.lifecycle import Actor, ConcurrentTransitionError, ProjectEvent
from src.assignx.models.enums import ProjectStatus
from src.assignx.services.transitions import TransitionRunner

logger = get_logger(__name__)


@dataclass
class SweepResult:
    """Outcome of one sweep run."""

    scanned: int = 0
    approved: list[UUID] = field(default_factory=list)
    skipped: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        return {
            "scanned": self.scanned,
            "approved": len(self.approved),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


class AutoApprovalService(TransitionRunner):
    async def run_sweep(self, now: datetime | None = None, limit: int | None = None) -> SweepResult:
        """Auto-approve every due project, one transaction per project.

        A failure on one project is logged and does not stop the sweep.
        """
        now = now or self.clock()
        limit = limit or get_settings().auto_approval_batch_size
        result = SweepResult()

        due = await self.repos.projects.list_due_for_auto_approval(now, limit)
        result.scanned = len(due)
        for project_id in due:
            try:
                approved = await self.auto_approve(project_id, now)
            except Exception as e:
                logger.error("Auto-approval failed", project_id=str(project_id), error=str(e))
                result.failed.append(project_id)
                continue
            (result.approved if approved else result.skipped).append(project_id)

        if result.scanned:
            logger.info("Auto-approval sweep finished", **result.as_dict())
        return result

    async def auto_approve(self, project_id: UUID, now: datetime) -> bool:
        """Complete one delivered project whose grace period has elapsed.

        Returns False when the project is no longer due, e.g. the client
        requested a revision or approved it first.
        """
        actor = Actor.system()
        try:
            async with self._transaction("auto_approve", actor, project_id):
                project = await self._load(project_id)
                if (
                    project.status != ProjectStatus.DELIVERED.value
                    or project.auto_approve_at is None
                    or project.auto_approve_at > now
                ):
                    return False

                project = await self._transition(
                    project,
                    ProjectEvent.AUTO_APPROVE,
                    actor,
                    values={"client_approved": True, "client_approved_at": now},
                    notes="Approved automatically after the review period",
                    due_before=now,
                )
                project = await self._transition(
                    project,
                    ProjectEvent.FINALIZE,
                    actor,
                    values={"completed_at": now},
                )
                await self._settle(project)
        except ConcurrentTransitionError:
            logger.info("Auto-approval lost race", project_id=str(project_id))
            return False
        return True
