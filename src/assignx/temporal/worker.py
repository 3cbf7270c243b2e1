"""
Temporal Worker - Separate process from API.

Run with:
    uv run python -m src.assignx.temporal.worker
    uv run python -m src.assignx.temporal.worker --no-schedule  # Skip schedule registration
"""

import argparse
import asyncio
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from temporalio.client import Client
from temporalio.worker import Worker

from src.assignx.core.config import get_settings
from src.assignx.core.db import dispose_engine
from src.assignx.core.logging import get_logger, setup_logging
from src.assignx.temporal.activities import run_auto_approval_sweep
from src.assignx.temporal.client import close_temporal_client, get_temporal_client
from src.assignx.temporal.schedules import ensure_auto_approval_schedule
from src.assignx.temporal.workflows import AutoApprovalSweepWorkflow

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the worker process."""
    parser = argparse.ArgumentParser(description="AssignX Temporal worker")
    parser.add_argument(
        "--no-schedule",
        action="store_true",
        help="Do not register the auto-approval schedule on startup",
    )
    parser.add_argument(
        "--health-port",
        type=int,
        default=WORKER_HEALTH_PORT,
        help=f"Port for the health server (default: {WORKER_HEALTH_PORT})",
    )
    return parser.parse_args(argv)


def create_worker(
    client: Client,
    task_queue: str,
    workflows: Sequence[type],
    activities: Sequence[object],  # type: ignore[type-arg]
    *,
    max_concurrent_activities: int = 20,
    max_concurrent_workflow_tasks: int = 20,
) -> Worker:
    """Create a worker with tuned settings.

    Args:
        client: Temporal client
        task_queue: Task queue name
        workflows: List of workflow classes
        activities: List of activity functions
        max_concurrent_activities: Max concurrent activity executions
        max_concurrent_workflow_tasks: Max concurrent workflow task executions

    Returns:
        Configured Worker instance
    """
    return Worker(
        client,
        task_queue=task_queue,
        workflows=list(workflows),
        activities=list(activities),  # type: ignore[arg-type]
        max_concurrent_activities=max_concurrent_activities,
        max_concurrent_workflow_tasks=max_concurrent_workflow_tasks,
    )


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    health_app = FastAPI(title="AssignX Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(health_app, host="0.0.0.0", port=port, log_level="warning")
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the Temporal worker."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()

    if not args.no_schedule:
        await ensure_auto_approval_schedule(client)

    worker = create_worker(
        client,
        settings.temporal_task_queue,
        workflows=[AutoApprovalSweepWorkflow],
        activities=[run_auto_approval_sweep],
    )
    logger.info(f"Polling task queue: {settings.temporal_task_queue}")

    try:
        await asyncio.gather(
            worker.run(),
            run_health_server(settings.temporal_task_queue, args.health_port),
        )
    finally:
        await close_temporal_client()
        await dispose_engine()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
