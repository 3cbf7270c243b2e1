"""Quotes and payouts."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

from src.assignx.models.base import utc_now
from src.assignx.models.enums import PayoutStatus


class ProjectQuote(SQLModel, table=True):
    """Settlement computed by the supervisor at quoting time.

    The latest quote is what the client pays. Its split is copied onto the
    project when payment is confirmed.
    """

    __tablename__ = "project_quotes"
    __table_args__ = (
        CheckConstraint(
            "doer_amount + supervisor_amount + platform_amount = client_quote",
            name="ck_project_quotes_split_sum",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    base_rate: Decimal = Field(max_digits=12, decimal_places=2)
    unit_count: int
    urgency_tier: str = Field(max_length=20)
    complexity_tier: str = Field(max_length=20)
    client_quote: Decimal = Field(max_digits=12, decimal_places=2)
    doer_amount: Decimal = Field(max_digits=12, decimal_places=2)
    supervisor_amount: Decimal = Field(max_digits=12, decimal_places=2)
    platform_amount: Decimal = Field(max_digits=12, decimal_places=2)
    quoted_by: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utc_now)


class Payout(SQLModel, table=True):
    """Ledger entry owed to a doer or supervisor once a project completes."""

    __tablename__ = "payouts"
    __table_args__ = (
        UniqueConstraint("project_id", "recipient_role", name="uq_payouts_project_role"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    recipient_id: UUID = Field(foreign_key="users.id", index=True)
    recipient_role: str = Field(max_length=20)
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    status: str = Field(default=PayoutStatus.PENDING.value, max_length=20)
    created_at: datetime = Field(default_factory=utc_now)
