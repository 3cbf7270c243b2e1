"""Shared enums for models."""

from enum import Enum


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    ANALYZING = "analyzing"
    QUOTED = "quoted"
    PAYMENT_PENDING = "payment_pending"
    PAID = "paid"
    ASSIGNING = "assigning"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    SUBMITTED_FOR_QC = "submitted_for_qc"
    QC_IN_PROGRESS = "qc_in_progress"
    QC_APPROVED = "qc_approved"
    QC_REJECTED = "qc_rejected"
    DELIVERED = "delivered"
    REVISION_REQUESTED = "revision_requested"
    IN_REVISION = "in_revision"
    COMPLETED = "completed"
    AUTO_APPROVED = "auto_approved"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class Role(str, Enum):
    """Actor kinds that may act on a project."""

    CLIENT = "client"
    SUPERVISOR = "supervisor"
    DOER = "doer"
    SYSTEM = "system"


class ServiceType(str, Enum):
    NEW_PROJECT = "new_project"
    PROOFREADING = "proofreading"
    PLAGIARISM_CHECK = "plagiarism_check"
    AI_DETECTION = "ai_detection"
    EXPERT_OPINION = "expert_opinion"


class UrgencyTier(str, Enum):
    """Deadline pressure at quoting time."""

    STANDARD = "standard"
    HOURS_72 = "72h"
    HOURS_48 = "48h"
    HOURS_24 = "24h"


class ComplexityTier(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RefundEligibility(str, Enum):
    """What a cancelled project is owed back."""

    NONE = "none"
    FULL = "full"
    PARTIAL = "partial"


class ReportType(str, Enum):
    PLAGIARISM = "plagiarism"
    AI_DETECTION = "ai_detection"


class ReportResult(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NOT_CHECKED = "not_checked"


class RevisionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"


class NotificationType(str, Enum):
    """Notification kinds sent to marketplace participants."""

    PROJECT_SUBMITTED = "project_submitted"
    QUOTE_READY = "quote_ready"
    PAYMENT_RECEIVED = "payment_received"
    PROJECT_ASSIGNED = "project_assigned"
    TASK_AVAILABLE = "task_available"
    TASK_ASSIGNED = "task_assigned"
    WORK_SUBMITTED = "work_submitted"
    QC_APPROVED = "qc_approved"
    QC_REJECTED = "qc_rejected"
    REVISION_REQUESTED = "revision_requested"
    PROJECT_DELIVERED = "project_delivered"
    PROJECT_COMPLETED = "project_completed"
    PROJECT_CANCELLED = "project_cancelled"
    STATUS_CHANGED = "status_changed"
