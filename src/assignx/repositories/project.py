"""Repositories for Project and its status history."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, or_, text, update
from sqlmodel import select

from src.assignx.lifecycle.ownership import check_writable
from src.assignx.models.base import utc_now
from src.assignx.models.enums import ProjectStatus, Role
from src.assignx.models.project import Project, ProjectStatusHistory
from src.assignx.repositories.base import BaseRepository

PROJECT_NUMBER_SEQUENCE = "project_number_seq"


def format_project_number(value: int) -> str:
    return f"AX-{value:05d}"


class ProjectRepository(BaseRepository[Project]):
    """Data access for projects.

    Every status change is a single conditional UPDATE on the status column,
    which is what serializes concurrent actors on the same project.
    """

    model = Project

    async def next_project_number(self) -> str:
        result = await self.session.execute(text(f"SELECT nextval('{PROJECT_NUMBER_SEQUENCE}')"))
        return format_project_number(int(result.scalar_one()))

    async def compare_and_set_status(
        self,
        project_id: UUID,
        expected: ProjectStatus,
        new: ProjectStatus,
        role: Role,
        values: dict[str, Any] | None = None,
        due_before: datetime | None = None,
    ) -> Project | None:
        """Move the project from `expected` to `new` if it is still in `expected`.

        Args:
            project_id: Project to update.
            expected: Status the caller observed.
            new: Status to write.
            role: Acting role; every column in `values` must be owned by it.
            values: Additional columns written in the same statement.
            due_before: Also require auto_approve_at <= due_before.

        Returns:
            The updated project, or None if another writer got there first.
        """
        values = dict(values or {})
        check_writable(role, values)

        now = utc_now()
        conditions = [Project.id == project_id, Project.status == expected.value]
        if due_before is not None:
            conditions.append(Project.auto_approve_at <= due_before)  # type: ignore[operator]

        stmt = (
            update(Project)
            .where(and_(*conditions))
            .values(status=new.value, status_updated_at=now, updated_at=now, **values)
            .returning(Project)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_fields(
        self,
        project_id: UUID,
        role: Role,
        values: dict[str, Any],
        expected: ProjectStatus | None = None,
    ) -> Project | None:
        """Write non-status columns, optionally only while the status is `expected`."""
        check_writable(role, values)

        conditions = [Project.id == project_id]
        if expected is not None:
            conditions.append(Project.status == expected.value)

        stmt = (
            update(Project)
            .where(and_(*conditions))
            .values(updated_at=utc_now(), **values)
            .returning(Project)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: UUID,
        role: Role,
        status: ProjectStatus | None = None,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[Project], str | None, bool]:
        """Projects visible to a participant.

        Supervisors also see the unclaimed queue of submitted projects.
        """
        query = select(Project)
        if role == Role.CLIENT:
            query = query.where(Project.client_id == user_id)
        elif role == Role.DOER:
            query = query.where(
                or_(Project.doer_id == user_id, Project.proposed_doer_id == user_id)
            )
        else:
            query = query.where(
                or_(
                    Project.supervisor_id == user_id,
                    and_(
                        Project.supervisor_id.is_(None),  # type: ignore[union-attr]
                        Project.status == ProjectStatus.SUBMITTED.value,
                    ),
                )
            )
        if status is not None:
            query = query.where(Project.status == status.value)
        return await self.paginate(query, cursor, limit, Project.created_at)

    async def list_due_for_auto_approval(self, now: datetime, limit: int = 200) -> list[UUID]:
        """IDs of delivered projects whose auto-approval time has passed."""
        result = await self.session.execute(
            select(Project.id)
            .where(
                Project.status == ProjectStatus.DELIVERED.value,
                Project.auto_approve_at <= now,  # type: ignore[operator]
            )
            .order_by(Project.auto_approve_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delivery_stats(self, user_id: UUID, role: Role) -> tuple[int, int]:
        """(completed, submitted on time) over the user's completed projects."""
        party = Project.doer_id if role == Role.DOER else Project.supervisor_id
        on_time = func.count().filter(Project.submitted_late == False)  # noqa: E712
        result = await self.session.execute(
            select(func.count(), on_time).where(
                party == user_id,
                Project.status == ProjectStatus.COMPLETED.value,
            )
        )
        completed, punctual = result.one()
        return int(completed), int(punctual)


class ProjectStatusHistoryRepository(BaseRepository[ProjectStatusHistory]):
    model = ProjectStatusHistory

    async def list_by_project(self, project_id: UUID) -> list[ProjectStatusHistory]:
        """Full timeline, oldest first."""
        result = await self.session.execute(
            select(ProjectStatusHistory)
            .where(ProjectStatusHistory.project_id == project_id)
            .order_by(ProjectStatusHistory.created_at)
        )
        return list(result.scalars().all())
