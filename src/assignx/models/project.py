"""Project and status history models."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Column, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.assignx.models.base import utc_now
from src.assignx.models.enums import ComplexityTier, ProjectStatus, ServiceType, UrgencyTier

PROJECT_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in ProjectStatus)


class Project(SQLModel, table=True):
    """A client order moving through the lifecycle state machine.

    Status changes go exclusively through ProjectRepository.compare_and_set_status,
    which also enforces which role may write which column.
    """

    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_status_auto_approve_at", "status", "auto_approve_at"),
        Index("ix_projects_supervisor_status", "supervisor_id", "status"),
        CheckConstraint(
            "doer_payout IS NULL OR "
            "doer_payout + supervisor_commission + platform_fee = client_quote",
            name="ck_projects_settlement_sum",
        ),
        CheckConstraint(f"status IN ({PROJECT_STATUS_VALUES})", name="ck_projects_status"),
        CheckConstraint(
            "client_grade IS NULL OR client_grade BETWEEN 1 AND 5", name="ck_projects_grade"
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_number: str = Field(max_length=20, unique=True, index=True)

    # Classification
    service_type: str = Field(default=ServiceType.NEW_PROJECT.value, max_length=30)
    title: str = Field(max_length=255)
    subject: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    word_count: int | None = Field(default=None)
    page_count: int | None = Field(default=None)
    reference_style: str | None = Field(default=None, max_length=50)
    urgency_tier: str = Field(default=UrgencyTier.STANDARD.value, max_length=20)
    complexity_tier: str = Field(default=ComplexityTier.EASY.value, max_length=20)

    # Lifecycle
    status: str = Field(default=ProjectStatus.DRAFT.value, max_length=30, index=True)
    status_updated_at: datetime = Field(default_factory=utc_now)

    # Parties
    client_id: UUID = Field(foreign_key="users.id", index=True)
    supervisor_id: UUID | None = Field(default=None, foreign_key="users.id")
    doer_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    proposed_doer_id: UUID | None = Field(default=None, foreign_key="users.id")
    supervisor_assigned_at: datetime | None = Field(default=None)
    doer_assigned_at: datetime | None = Field(default=None)

    # Financial (doer/supervisor/platform set at payment, frozen thereafter)
    client_quote: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    doer_payout: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    supervisor_commission: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    platform_fee: Decimal | None = Field(default=None, max_digits=12, decimal_places=2)
    payment_id: str | None = Field(default=None, max_length=100)
    paid_at: datetime | None = Field(default=None)

    # Schedule
    deadline: datetime | None = Field(default=None)
    original_deadline: datetime | None = Field(default=None)
    deadline_extended: bool = Field(default=False)
    deadline_extension_reason: str | None = Field(default=None, max_length=1000)
    delivered_at: datetime | None = Field(default=None)
    auto_approve_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    submitted_for_qc_at: datetime | None = Field(default=None)
    submitted_late: bool = Field(default=False)

    # Quality
    plagiarism_score: Decimal | None = Field(default=None, max_digits=5, decimal_places=2)
    ai_score: Decimal | None = Field(default=None, max_digits=5, decimal_places=2)
    qc_notes: str | None = Field(default=None, max_length=2000)

    # Client approval
    client_approved: bool = Field(default=False)
    client_approved_at: datetime | None = Field(default=None)
    client_feedback: str | None = Field(default=None, max_length=2000)
    client_grade: int | None = Field(default=None, ge=1, le=5)

    # Cancellation
    cancelled_at: datetime | None = Field(default=None)
    cancelled_by: UUID | None = Field(default=None)
    cancellation_reason: str | None = Field(default=None, max_length=1000)
    refund_eligibility: str | None = Field(default=None, max_length=20)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProjectStatusHistory(SQLModel, table=True):
    """One row per applied transition. Append-only."""

    __tablename__ = "project_status_history"
    __table_args__ = (Index("ix_project_status_history_project_created", "project_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id")
    from_status: str | None = Field(default=None, max_length=30)
    to_status: str = Field(max_length=30)
    event: str = Field(max_length=40)
    changed_by: UUID | None = Field(default=None)  # None for the system actor
    changed_by_role: str = Field(max_length=20)
    notes: str | None = Field(default=None, max_length=2000)
    extra: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column("metadata", JSONB, nullable=True),
    )
    created_at: datetime = Field(default_factory=utc_now)
