"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.assignx.api.dependencies.db import DBSession
from src.assignx.repositories import (
    BlacklistRepository,
    PayoutRepository,
    ProjectRepository,
    RefreshTokenRepository,
    UserRepository,
)
from src.assignx.services.transitions import LifecycleRepositories


def get_user_repository(session: DBSession) -> UserRepository:
    return UserRepository(session)


def get_token_repository(session: DBSession) -> RefreshTokenRepository:
    return RefreshTokenRepository(session)


def get_project_repository(session: DBSession) -> ProjectRepository:
    return ProjectRepository(session)


def get_payout_repository(session: DBSession) -> PayoutRepository:
    return PayoutRepository(session)


def get_blacklist_repository(session: DBSession) -> BlacklistRepository:
    return BlacklistRepository(session)


def get_lifecycle_repositories(session: DBSession) -> LifecycleRepositories:
    """All repositories taking part in a lifecycle action, on one session."""
    return LifecycleRepositories.from_session(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
TokenRepo = Annotated[RefreshTokenRepository, Depends(get_token_repository)]
ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
PayoutRepo = Annotated[PayoutRepository, Depends(get_payout_repository)]
BlacklistRepo = Annotated[BlacklistRepository, Depends(get_blacklist_repository)]
LifecycleRepos = Annotated[LifecycleRepositories, Depends(get_lifecycle_repositories)]
