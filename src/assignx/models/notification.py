"""In-app notifications and the supervisor's doer blacklist."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.assignx.models.base import utc_now


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id")
    project_id: UUID | None = Field(default=None, foreign_key="projects.id")
    notification_type: str = Field(max_length=40)
    title: str = Field(max_length=255)
    body: str = Field(max_length=2000)
    is_read: bool = Field(default=False)
    read_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class SupervisorBlacklistedDoer(SQLModel, table=True):
    """A doer the supervisor refuses to assign work to."""

    __tablename__ = "supervisor_blacklisted_doers"
    __table_args__ = (
        UniqueConstraint("supervisor_id", "doer_id", name="uq_blacklist_supervisor_doer"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    supervisor_id: UUID = Field(foreign_key="users.id", index=True)
    doer_id: UUID = Field(foreign_key="users.id")
    reason: str | None = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=utc_now)
