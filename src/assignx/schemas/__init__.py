from src.assignx.schemas.audit import AuditLogRead
from src.assignx.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
)
from src.assignx.schemas.blacklist import BlacklistCreate, BlacklistRead
from src.assignx.schemas.earnings import EarningsSummary, PayoutRead
from src.assignx.schemas.notification import NotificationRead
from src.assignx.schemas.pagination import PaginatedResponse
from src.assignx.schemas.payment import PaymentConfirmation
from src.assignx.schemas.project import (
    ApproveDeliveryRequest,
    DeadlineExtensionRequest,
    DeliverableCreate,
    DeliverableRead,
    DoerRequest,
    NextActionsResponse,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    QcDecisionRequest,
    QualityReportRead,
    QualityScoresRequest,
    QuoteRequest,
    ReasonRequest,
    RevisionRead,
    RevisionRequest,
    SettlementOverrideRequest,
    StatusHistoryRead,
)
from src.assignx.schemas.user import UserRead, UserUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "RegisterResponse",
    # Users
    "UserRead",
    "UserUpdate",
    # Projects
    "ApproveDeliveryRequest",
    "DeadlineExtensionRequest",
    "DeliverableCreate",
    "DeliverableRead",
    "DoerRequest",
    "NextActionsResponse",
    "ProjectCreate",
    "ProjectRead",
    "ProjectUpdate",
    "QcDecisionRequest",
    "QualityReportRead",
    "QualityScoresRequest",
    "QuoteRequest",
    "ReasonRequest",
    "RevisionRead",
    "RevisionRequest",
    "SettlementOverrideRequest",
    "StatusHistoryRead",
    # Other
    "AuditLogRead",
    "BlacklistCreate",
    "BlacklistRead",
    "EarningsSummary",
    "NotificationRead",
    "PaginatedResponse",
    "PaymentConfirmation",
    "PayoutRead",
]
