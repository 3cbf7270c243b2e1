"""Deliverables, revisions and quality reports attached to a project."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.assignx.models.base import utc_now
from src.assignx.models.enums import ReportResult, RevisionStatus


class ProjectDeliverable(SQLModel, table=True):
    """Reference to a file the doer uploaded to storage."""

    __tablename__ = "project_deliverables"
    __table_args__ = (
        UniqueConstraint("project_id", "file_url", name="uq_project_deliverables_project_file"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    file_url: str = Field(max_length=1000)
    file_name: str = Field(max_length=255)
    file_type: str | None = Field(default=None, max_length=100)
    file_size_bytes: int | None = Field(default=None)
    version: int = Field(default=1)
    uploaded_by: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)


class ProjectRevision(SQLModel, table=True):
    """A revision cycle, opened by a QC rejection or by the client."""

    __tablename__ = "project_revisions"
    __table_args__ = (
        UniqueConstraint("project_id", "revision_number", name="uq_project_revisions_number"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    revision_number: int
    feedback: str = Field(max_length=5000)
    requested_by: UUID | None = Field(default=None, foreign_key="users.id")
    requested_by_role: str = Field(max_length=20)
    status: str = Field(default=RevisionStatus.PENDING.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: datetime | None = Field(default=None)


class QualityReport(SQLModel, table=True):
    """Plagiarism or AI-detection check recorded by a supervisor."""

    __tablename__ = "quality_reports"
    __table_args__ = (
        CheckConstraint(
            "report_type IN ('plagiarism', 'ai_detection')", name="ck_quality_reports_type"
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    report_type: str = Field(max_length=20)
    score: Decimal | None = Field(default=None, max_digits=5, decimal_places=2)
    result: str = Field(default=ReportResult.NOT_CHECKED.value, max_length=20)
    tool_used: str | None = Field(default=None, max_length=100)
    report_url: str | None = Field(default=None, max_length=1000)
    recorded_by: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)
