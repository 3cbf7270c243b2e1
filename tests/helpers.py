"""Test helpers that wire the lifecycle services to in-memory storage."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from src.assignx.lifecycle import Actor
from src.assignx.models import Project, User
from src.assignx.models.enums import ComplexityTier, ProjectStatus, Role, UrgencyTier
from src.assignx.schemas.project import ProjectCreate
from src.assignx.services import (
    AuditService,
    AutoApprovalService,
    NotificationService,
    ProjectLifecycleService,
    QualityGateService,
)
from tests.factories import UserFactory
from tests.fakes import (
    FakeAuditLogRepository,
    FakeClock,
    FakeNotificationRepository,
    FakeSession,
    FakeUserRepository,
    InMemoryStore,
    make_repositories,
)

# Scenario pricing: 10 units at 100.00, no urgency or complexity uplift
BASE_RATE = Decimal("100")
UNIT_COUNT = 10
QUOTED_PRICE = Decimal("1000.00")

HAPPY_PATH = [
    ProjectStatus.DRAFT,
    ProjectStatus.SUBMITTED,
    ProjectStatus.ANALYZING,
    ProjectStatus.QUOTED,
    ProjectStatus.PAYMENT_PENDING,
    ProjectStatus.PAID,
    ProjectStatus.ASSIGNING,
    ProjectStatus.ASSIGNED,
    ProjectStatus.IN_PROGRESS,
    ProjectStatus.SUBMITTED_FOR_QC,
    ProjectStatus.QC_IN_PROGRESS,
    ProjectStatus.DELIVERED,
]


class LifecycleWorld:
    """Three parties and the services they act through, over one shared store."""

    def __init__(self, clock: FakeClock | None = None):
        self.store = InMemoryStore()
        self.clock = clock or FakeClock()
        self.client_user = UserFactory.client()
        self.supervisor_user = UserFactory.supervisor()
        self.doer_user = UserFactory.doer()
        for user in (self.client_user, self.supervisor_user, self.doer_user):
            self.add_user(user)
        self.last_session: FakeSession | None = None
        self._uploads = 0

    def add_user(self, user: User) -> User:
        self.store.users[user.id] = user
        return user

    @staticmethod
    def actor(user: User) -> Actor:
        return Actor(id=user.id, role=Role(user.role))

    @property
    def client(self) -> Actor:
        return self.actor(self.client_user)

    @property
    def supervisor(self) -> Actor:
        return self.actor(self.supervisor_user)

    @property
    def doer(self) -> Actor:
        return self.actor(self.doer_user)

    # ---- services ------------------------------------------------------

    def _runner_kwargs(self, defer_notices: bool = False) -> dict[str, Any]:
        session = FakeSession()
        notification_session = FakeSession()
        audit_session = FakeSession()
        self.last_session = session
        return {
            "repos": make_repositories(self.store, session),
            "session": session,
            "notifier": NotificationService(
                FakeNotificationRepository(self.store, notification_session),  # type: ignore[arg-type]
                FakeUserRepository(self.store, notification_session),  # type: ignore[arg-type]
                notification_session,  # type: ignore[arg-type]
                send_email=False,
            ),
            "audit": AuditService(
                FakeAuditLogRepository(self.store, audit_session),  # type: ignore[arg-type]
                audit_session,  # type: ignore[arg-type]
            ),
            "clock": self.clock,
            "defer_notices": defer_notices,
        }

    def lifecycle(self, defer_notices: bool = False) -> ProjectLifecycleService:
        return ProjectLifecycleService(**self._runner_kwargs(defer_notices))

    def quality_gate(self) -> QualityGateService:
        return QualityGateService(**self._runner_kwargs())

    def auto_approval(self) -> AutoApprovalService:
        return AutoApprovalService(**self._runner_kwargs())

    # ---- scenarios -----------------------------------------------------

    def project(self, project: Project) -> Project:
        """Fresh copy of the stored project."""
        return self.store.project(project.id)

    async def create_project(self, deadline: datetime | None = None, **overrides: Any) -> Project:
        overrides.setdefault("title", "Market entry essay")
        data = ProjectCreate(deadline=deadline, **overrides)
        return await self.lifecycle().create_project(self.client, data)

    async def upload(self, project: Project) -> None:
        self._uploads += 1
        await self.lifecycle().add_deliverable(
            project.id,
            self.doer,
            file_url=f"https://files.example.com/{project.project_number}/v{self._uploads}.docx",
            file_name=f"draft-v{self._uploads}.docx",
        )

    async def record_passing_scores(self, project: Project) -> None:
        await self.quality_gate().record_quality_scores(
            project.id,
            self.supervisor,
            plagiarism_score=Decimal("4.5"),
            ai_score=Decimal("8"),
            tool_used="turnitin",
        )

    async def advance_to(self, status: ProjectStatus, project: Project | None = None) -> Project:
        """Drive a project along the happy path until it reaches `status`."""
        project = project or await self.create_project()
        while project.status != status.value:
            current = ProjectStatus(project.status)
            if current not in HAPPY_PATH or HAPPY_PATH.index(current) >= HAPPY_PATH.index(status):
                raise AssertionError(f"Cannot advance from {current.value} to {status.value}")
            await self._step(project, current)
            project = self.project(project)
        return project

    async def _step(self, project: Project, current: ProjectStatus) -> None:
        lifecycle = self.lifecycle()
        match current:
            case ProjectStatus.DRAFT:
                await lifecycle.submit(project.id, self.client)
            case ProjectStatus.SUBMITTED:
                await lifecycle.start_analysis(project.id, self.supervisor)
            case ProjectStatus.ANALYZING:
                await lifecycle.quote(
                    project.id,
                    self.supervisor,
                    ComplexityTier.EASY,
                    base_rate=BASE_RATE,
                    unit_count=UNIT_COUNT,
                    urgency_tier=UrgencyTier.STANDARD,
                )
            case ProjectStatus.QUOTED:
                await lifecycle.request_payment(project.id, self.client)
            case ProjectStatus.PAYMENT_PENDING:
                await lifecycle.confirm_payment(
                    project.id, QUOTED_PRICE, payment_id=f"pay_{project.project_number}"
                )
            case ProjectStatus.PAID:
                await lifecycle.start_assignment(project.id, self.supervisor)
            case ProjectStatus.ASSIGNING:
                await lifecycle.propose_doer(project.id, self.supervisor, self.doer_user.id)
                await self.lifecycle().accept_assignment(project.id, self.doer)
            case ProjectStatus.ASSIGNED:
                await self.upload(project)
            case ProjectStatus.IN_PROGRESS:
                await lifecycle.submit_for_qc(project.id, self.doer)
            case ProjectStatus.SUBMITTED_FOR_QC:
                await self.quality_gate().start_qc(project.id, self.supervisor)
            case ProjectStatus.QC_IN_PROGRESS:
                await self.record_passing_scores(project)
                await self.quality_gate().approve_qc(project.id, self.supervisor)
