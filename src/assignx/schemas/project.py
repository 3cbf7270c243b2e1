"""Project schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.assignx.models.base import to_utc_naive
from src.assignx.models.enums import ComplexityTier, ProjectStatus, ServiceType, UrgencyTier


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Value cannot be empty or whitespace only")
    return v


def _strip_optional(v: str | None) -> str | None:
    if v is not None:
        v = v.strip()
        if not v:
            return None
    return v


def _utc_deadline(v: datetime | None) -> datetime | None:
    # Stored as TIMESTAMP WITHOUT TIME ZONE in UTC
    return to_utc_naive(v) if v is not None else None


class ProjectCreate(BaseModel):
    """Schema for creating a draft project."""

    service_type: ServiceType = ServiceType.NEW_PROJECT
    title: str = Field(min_length=1, max_length=255)
    subject: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    word_count: int | None = Field(default=None, gt=0)
    page_count: int | None = Field(default=None, gt=0)
    reference_style: str | None = Field(default=None, max_length=50)
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("subject", "description", "reference_style")
    @classmethod
    def validate_optional_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v: datetime | None) -> datetime | None:
        return _utc_deadline(v)


class ProjectUpdate(BaseModel):
    """Editable order details while the project is a draft."""

    service_type: ServiceType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    subject: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    word_count: int | None = Field(default=None, gt=0)
    page_count: int | None = Field(default=None, gt=0)
    reference_style: str | None = Field(default=None, max_length=50)
    deadline: datetime | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return _strip_required(v) if v is not None else None

    @field_validator("subject", "description", "reference_style")
    @classmethod
    def validate_optional_text(cls, v: str | None) -> str | None:
        return _strip_optional(v)

    @field_validator("deadline")
    @classmethod
    def validate_deadline(cls, v: datetime | None) -> datetime | None:
        return _utc_deadline(v)


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_number: str
    service_type: ServiceType
    title: str
    subject: str | None
    description: str | None
    word_count: int | None
    page_count: int | None
    reference_style: str | None
    urgency_tier: UrgencyTier
    complexity_tier: ComplexityTier
    status: ProjectStatus
    status_updated_at: datetime

    client_id: UUID
    supervisor_id: UUID | None
    doer_id: UUID | None
    proposed_doer_id: UUID | None

    client_quote: Decimal | None
    doer_payout: Decimal | None
    supervisor_commission: Decimal | None
    platform_fee: Decimal | None
    paid_at: datetime | None

    deadline: datetime | None
    original_deadline: datetime | None
    deadline_extended: bool
    delivered_at: datetime | None
    auto_approve_at: datetime | None
    completed_at: datetime | None
    submitted_late: bool

    plagiarism_score: Decimal | None
    ai_score: Decimal | None
    qc_notes: str | None

    client_approved: bool
    client_grade: int | None
    client_feedback: str | None

    cancelled_at: datetime | None
    cancellation_reason: str | None
    refund_eligibility: str | None

    created_at: datetime
    updated_at: datetime


class StatusHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    from_status: ProjectStatus | None
    to_status: ProjectStatus
    event: str
    changed_by: UUID | None
    changed_by_role: str
    notes: str | None
    extra: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime


class NextActionsResponse(BaseModel):
    status: ProjectStatus
    next_actions: list[str]


class DeliverableCreate(BaseModel):
    file_url: str = Field(min_length=1, max_length=1000)
    file_name: str = Field(min_length=1, max_length=255)
    file_type: str | None = Field(default=None, max_length=100)
    file_size_bytes: int | None = Field(default=None, ge=0)


class DeliverableRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    file_url: str
    file_name: str
    file_type: str | None
    file_size_bytes: int | None
    version: int
    uploaded_by: UUID
    created_at: datetime


class RevisionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    revision_number: int
    feedback: str
    requested_by: UUID | None
    requested_by_role: str
    status: str
    created_at: datetime
    completed_at: datetime | None


class QuoteRequest(BaseModel):
    """Supervisor's pricing input. Omitted values fall back to configured defaults."""

    complexity_tier: ComplexityTier
    base_rate: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    unit_count: int | None = Field(default=None, ge=0)
    urgency_tier: UrgencyTier | None = None


class DoerRequest(BaseModel):
    doer_id: UUID


class ReasonRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return _strip_required(v)


class ApproveDeliveryRequest(BaseModel):
    grade: int | None = Field(default=None, ge=1, le=5)
    feedback: str | None = Field(default=None, max_length=2000)

    @field_validator("feedback")
    @classmethod
    def validate_feedback(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class RevisionRequest(BaseModel):
    feedback: str = Field(min_length=1, max_length=5000)

    @field_validator("feedback")
    @classmethod
    def validate_feedback(cls, v: str) -> str:
        return _strip_required(v)


class DeadlineExtensionRequest(BaseModel):
    new_deadline: datetime
    reason: str = Field(min_length=1, max_length=1000)

    @field_validator("new_deadline")
    @classmethod
    def validate_new_deadline(cls, v: datetime) -> datetime:
        return to_utc_naive(v)


class SettlementOverrideRequest(BaseModel):
    client_quote: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(min_length=1, max_length=1000)


class QualityScoresRequest(BaseModel):
    """Percent scores; leave a score empty when the check was not run."""

    plagiarism_score: Decimal | None = Field(default=None, ge=0, le=100)
    ai_score: Decimal | None = Field(default=None, ge=0, le=100)
    notes: str | None = Field(default=None, max_length=2000)
    tool_used: str | None = Field(default=None, max_length=100)


class QualityReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    report_type: str
    score: Decimal | None
    result: str
    tool_used: str | None
    recorded_by: UUID
    created_at: datetime


class QcDecisionRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)
