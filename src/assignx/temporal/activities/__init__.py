"""Temporal activities - idempotent units of background work."""

from src.assignx.temporal.activities.auto_approval import (
    AutoApprovalSweepInput,
    run_auto_approval_sweep,
)

__all__ = ["AutoApprovalSweepInput", "run_auto_approval_sweep"]
