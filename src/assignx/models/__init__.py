"""Model exports.

Import from here: `from src.assignx.models import Project, User`
"""

from src.assignx.models.audit import AuditAction, AuditLog, AuditStatus
from src.assignx.models.enums import (
    ComplexityTier,
    NotificationType,
    PayoutStatus,
    ProjectStatus,
    RefundEligibility,
    ReportResult,
    ReportType,
    RevisionStatus,
    Role,
    ServiceType,
    UrgencyTier,
)
from src.assignx.models.notification import Notification, SupervisorBlacklistedDoer
from src.assignx.models.project import Project, ProjectStatusHistory
from src.assignx.models.quality import ProjectDeliverable, ProjectRevision, QualityReport
from src.assignx.models.settlement import Payout, ProjectQuote
from src.assignx.models.user import RefreshToken, User

__all__ = [
    # Enums
    "ComplexityTier",
    "NotificationType",
    "PayoutStatus",
    "ProjectStatus",
    "RefundEligibility",
    "ReportResult",
    "ReportType",
    "RevisionStatus",
    "Role",
    "ServiceType",
    "UrgencyTier",
    # Accounts
    "RefreshToken",
    "User",
    # Projects
    "Project",
    "ProjectDeliverable",
    "ProjectQuote",
    "ProjectRevision",
    "ProjectStatusHistory",
    "QualityReport",
    # Settlement and messaging
    "Notification",
    "Payout",
    "SupervisorBlacklistedDoer",
    # Audit
    "AuditAction",
    "AuditLog",
    "AuditStatus",
]
