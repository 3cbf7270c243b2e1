"""Repository exports."""

from src.assignx.repositories.audit import AuditLogRepository
from src.assignx.repositories.base import BaseRepository
from src.assignx.repositories.notification import BlacklistRepository, NotificationRepository
from src.assignx.repositories.project import (
    ProjectRepository,
    ProjectStatusHistoryRepository,
    format_project_number,
)
from src.assignx.repositories.quality import (
    DeliverableRepository,
    QualityReportRepository,
    RevisionRepository,
)
from src.assignx.repositories.settlement import PayoutRepository, QuoteRepository
from src.assignx.repositories.user import RefreshTokenRepository, UserRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "BlacklistRepository",
    "DeliverableRepository",
    "NotificationRepository",
    "PayoutRepository",
    "ProjectRepository",
    "ProjectStatusHistoryRepository",
    "QualityReportRepository",
    "QuoteRepository",
    "RefreshTokenRepository",
    "RevisionRepository",
    "UserRepository",
    "format_project_number",
]
