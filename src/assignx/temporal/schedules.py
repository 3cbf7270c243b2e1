"""Temporal Schedule registration for recurring jobs."""

from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleOverlapPolicy,
    SchedulePolicy,
    ScheduleSpec,
)

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger
from src.assignx.temporal.workflows import AutoApprovalSweepWorkflow

logger = get_logger(__name__)

AUTO_APPROVAL_SCHEDULE_ID = "auto-approval-sweep"


def build_auto_approval_schedule(cron: str, batch_size: int, task_queue: str) -> Schedule:
    return Schedule(
        action=ScheduleActionStartWorkflow(
            AutoApprovalSweepWorkflow.run,
            batch_size,
            id=f"{AUTO_APPROVAL_SCHEDULE_ID}-run",
            task_queue=task_queue,
        ),
        spec=ScheduleSpec(cron_expressions=[cron]),
        policy=SchedulePolicy(overlap=ScheduleOverlapPolicy.SKIP),
    )


async def ensure_auto_approval_schedule(client: Client) -> bool:
    """Create the auto-approval schedule unless it already exists.

    Returns:
        True if the schedule was created by this call. False when it already
        exists or scheduling is disabled.
    """
    settings = get_settings()
    if not settings.auto_approval_schedule:
        logger.info("Auto-approval schedule disabled")
        return False

    schedule = build_auto_approval_schedule(
        settings.auto_approval_schedule,
        settings.auto_approval_batch_size,
        settings.temporal_task_queue,
    )
    try:
        await client.create_schedule(AUTO_APPROVAL_SCHEDULE_ID, schedule)
    except ScheduleAlreadyRunningError:
        logger.info("Auto-approval schedule already registered")
        return False

    logger.info(
        "Auto-approval schedule registered",
        cron=settings.auto_approval_schedule,
        task_queue=settings.temporal_task_queue,
    )
    return True
