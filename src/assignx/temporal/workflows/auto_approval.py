"""Auto-approval sweep workflow, started by a Temporal Schedule."""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.assignx.temporal.activities import AutoApprovalSweepInput, run_auto_approval_sweep


@workflow.defn
class AutoApprovalSweepWorkflow:
    """Run one auto-approval sweep.

    Overlapping runs are harmless: the schedule skips overlaps, and the
    activity only moves projects that are still due.
    """

    @workflow.run
    async def run(self, batch_size: int = 200) -> dict[str, int]:
        result: dict[str, int] = await workflow.execute_activity(
            run_auto_approval_sweep,
            AutoApprovalSweepInput(batch_size=batch_size),
            start_to_close_timeout=timedelta(minutes=10),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=5),
            ),
        )
        workflow.logger.info(
            f"Auto-approval sweep: {result['approved']} of {result['scanned']} projects approved"
        )
        return result
