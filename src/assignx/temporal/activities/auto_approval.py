"""Auto-approval sweep activity."""

from dataclasses import dataclass

from temporalio import activity

from src.assignx.core.db import get_session
from src.assignx.repositories import NotificationRepository, UserRepository
from src.assignx.services.auto_approval_service import AutoApprovalService
from src.assignx.services.notification_service import NotificationService
from src.assignx.services.transitions import LifecycleRepositories


@dataclass
class AutoApprovalSweepInput:
    batch_size: int


@activity.defn
async def run_auto_approval_sweep(input: AutoApprovalSweepInput) -> dict[str, int]:
    """Complete delivered projects whose review period has elapsed.

    Idempotent: each project is moved with a conditional update, so a retried
    or overlapping sweep skips projects that are no longer due.

    Returns:
        Counts of scanned, approved, skipped and failed projects.
    """
    activity.logger.info(f"Running auto-approval sweep (batch size {input.batch_size})")

    async with get_session() as session, get_session() as notification_session:
        notifier = NotificationService(
            NotificationRepository(notification_session),
            UserRepository(notification_session),
            notification_session,
        )
        service = AutoApprovalService(
            LifecycleRepositories.from_session(session),
            session,
            notifier=notifier,
        )
        result = await service.run_sweep(limit=input.batch_size)

    summary = result.as_dict()
    activity.logger.info(
        f"Auto-approval sweep complete: {summary['approved']} approved, "
        f"{summary['skipped']} skipped, {summary['failed']} failed"
    )
    return summary
