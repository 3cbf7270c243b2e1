from src.assignx.services.audit_service import AuditService
from src.assignx.services.auth_service import AuthService
from src.assignx.services.auto_approval_service import AutoApprovalService, SweepResult
from src.assignx.services.blacklist_service import BlacklistService
from src.assignx.services.earnings_service import EarningsService
from src.assignx.services.lifecycle_service import ProjectLifecycleService
from src.assignx.services.notification_service import NotificationService, TransitionNotice
from src.assignx.services.quality_gate import QualityGateService
from src.assignx.services.transitions import LifecycleRepositories, TransitionRunner
from src.assignx.services.user_service import UserService

__all__ = [
    "AuditService",
    "AuthService",
    "AutoApprovalService",
    "BlacklistService",
    "EarningsService",
    "LifecycleRepositories",
    "NotificationService",
    "ProjectLifecycleService",
    "QualityGateService",
    "SweepResult",
    "TransitionNotice",
    "TransitionRunner",
    "UserService",
]
