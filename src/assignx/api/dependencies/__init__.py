"""FastAPI dependency injection definitions."""

from src.assignx.api.dependencies.auth import (
    CurrentActor,
    CurrentUser,
    EarnerUser,
    SupervisorUser,
    get_current_actor,
    get_current_user,
    require_earner,
)
from src.assignx.api.dependencies.db import DBSession, get_db_session
from src.assignx.api.dependencies.repositories import (
    BlacklistRepo,
    LifecycleRepos,
    PayoutRepo,
    ProjectRepo,
    TokenRepo,
    UserRepo,
    get_lifecycle_repositories,
    get_user_repository,
)
from src.assignx.api.dependencies.services import (
    AuditServiceDep,
    AuthServiceDep,
    BlacklistServiceDep,
    EarningsServiceDep,
    LifecycleServiceDep,
    NotificationServiceDep,
    QualityGateServiceDep,
    UserServiceDep,
    get_audit_service,
    get_auth_service,
    get_lifecycle_service,
    get_notification_service,
    get_quality_gate_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "CurrentActor",
    "CurrentUser",
    "EarnerUser",
    "SupervisorUser",
    "get_current_actor",
    "get_current_user",
    "require_earner",
    # Repositories
    "BlacklistRepo",
    "LifecycleRepos",
    "PayoutRepo",
    "ProjectRepo",
    "TokenRepo",
    "UserRepo",
    "get_lifecycle_repositories",
    "get_user_repository",
    # Services
    "AuditServiceDep",
    "AuthServiceDep",
    "BlacklistServiceDep",
    "EarningsServiceDep",
    "LifecycleServiceDep",
    "NotificationServiceDep",
    "QualityGateServiceDep",
    "UserServiceDep",
    "get_audit_service",
    "get_auth_service",
    "get_lifecycle_service",
    "get_notification_service",
    "get_quality_gate_service",
]
