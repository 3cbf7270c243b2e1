"""Service factory dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends

from src.assignx.api.dependencies.db import DBSession
from src.assignx.api.dependencies.repositories import (
    BlacklistRepo,
    LifecycleRepos,
    PayoutRepo,
    ProjectRepo,
    TokenRepo,
    UserRepo,
)
from src.assignx.core.db import get_session
from src.assignx.repositories import AuditLogRepository, NotificationRepository, UserRepository
from src.assignx.services import (
    AuditService,
    AuthService,
    BlacklistService,
    EarningsService,
    NotificationService,
    ProjectLifecycleService,
    QualityGateService,
    UserService,
)


async def get_audit_service() -> AsyncGenerator[AuditService]:
    """Audit service on its own isolated session.

    Audit entries commit independently, so they survive a rolled-back
    business transaction.
    """
    async with get_session() as session:
        yield AuditService(AuditLogRepository(session), session)


async def get_notification_service() -> AsyncGenerator[NotificationService]:
    """Notification service on its own isolated session."""
    async with get_session() as session:
        yield NotificationService(NotificationRepository(session), UserRepository(session), session)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


def get_user_service(user_repo: UserRepo, session: DBSession) -> UserService:
    return UserService(user_repo, session)


def get_auth_service(user_repo: UserRepo, token_repo: TokenRepo, session: DBSession) -> AuthService:
    return AuthService(user_repo, token_repo, session)


def get_lifecycle_service(
    repos: LifecycleRepos,
    session: DBSession,
    audit: AuditServiceDep,
) -> ProjectLifecycleService:
    """Notices are held for the route to dispatch once the action is done."""
    return ProjectLifecycleService(repos, session, audit=audit, defer_notices=True)


def get_quality_gate_service(
    repos: LifecycleRepos,
    session: DBSession,
    audit: AuditServiceDep,
) -> QualityGateService:
    return QualityGateService(repos, session, audit=audit, defer_notices=True)


def get_blacklist_service(
    blacklist_repo: BlacklistRepo,
    user_repo: UserRepo,
    session: DBSession,
    audit: AuditServiceDep,
) -> BlacklistService:
    return BlacklistService(blacklist_repo, user_repo, session, audit=audit)


def get_earnings_service(payout_repo: PayoutRepo, project_repo: ProjectRepo) -> EarningsService:
    return EarningsService(payout_repo, project_repo)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
LifecycleServiceDep = Annotated[ProjectLifecycleService, Depends(get_lifecycle_service)]
QualityGateServiceDep = Annotated[QualityGateService, Depends(get_quality_gate_service)]
BlacklistServiceDep = Annotated[BlacklistService, Depends(get_blacklist_service)]
EarningsServiceDep = Annotated[EarningsService, Depends(get_earnings_service)]
