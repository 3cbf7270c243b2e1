"""Repositories for deliverables, revisions and quality reports."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select

from src.assignx.models.enums import RevisionStatus
from src.assignx.models.quality import ProjectDeliverable, ProjectRevision, QualityReport
from src.assignx.repositories.base import BaseRepository


class DeliverableRepository(BaseRepository[ProjectDeliverable]):
    model = ProjectDeliverable

    async def get_by_file_url(self, project_id: UUID, file_url: str) -> ProjectDeliverable | None:
        result = await self.session.execute(
            select(ProjectDeliverable).where(
                ProjectDeliverable.project_id == project_id,
                ProjectDeliverable.file_url == file_url,
            )
        )
        return result.scalar_one_or_none()

    async def count_by_project(self, project_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(ProjectDeliverable)
            .where(ProjectDeliverable.project_id == project_id)
        )
        return int(result.scalar_one())

    async def list_by_project(self, project_id: UUID) -> list[ProjectDeliverable]:
        result = await self.session.execute(
            select(ProjectDeliverable)
            .where(ProjectDeliverable.project_id == project_id)
            .order_by(ProjectDeliverable.created_at)
        )
        return list(result.scalars().all())


class RevisionRepository(BaseRepository[ProjectRevision]):
    model = ProjectRevision

    async def next_revision_number(self, project_id: UUID) -> int:
        result = await self.session.execute(
            select(func.max(ProjectRevision.revision_number)).where(
                ProjectRevision.project_id == project_id
            )
        )
        return int(result.scalar_one_or_none() or 0) + 1

    async def get_open(self, project_id: UUID) -> ProjectRevision | None:
        """Latest revision that has not been completed yet."""
        result = await self.session.execute(
            select(ProjectRevision)
            .where(
                ProjectRevision.project_id == project_id,
                ProjectRevision.status != RevisionStatus.COMPLETED.value,
            )
            .order_by(ProjectRevision.revision_number.desc())  # type: ignore[attr-defined]
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_project(self, project_id: UUID) -> list[ProjectRevision]:
        result = await self.session.execute(
            select(ProjectRevision)
            .where(ProjectRevision.project_id == project_id)
            .order_by(ProjectRevision.revision_number)
        )
        return list(result.scalars().all())


class QualityReportRepository(BaseRepository[QualityReport]):
    model = QualityReport

    async def list_since(self, project_id: UUID, since: datetime | None) -> list[QualityReport]:
        """Reports recorded at or after `since` (all reports when None)."""
        query = select(QualityReport).where(QualityReport.project_id == project_id)
        if since is not None:
            query = query.where(QualityReport.created_at >= since)
        result = await self.session.execute(query.order_by(QualityReport.created_at))
        return list(result.scalars().all())
