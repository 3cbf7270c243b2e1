"""Temporal Workflows - Re-exports for worker registration."""

from src.assignx.temporal.workflows.auto_approval import AutoApprovalSweepWorkflow

__all__ = ["AutoApprovalSweepWorkflow"]
