"""Project endpoints - order CRUD, lifecycle actions and timelines.

Every action endpoint goes through the lifecycle services, which own the
state machine. Actions accept an optional Idempotency-Key header: a retried
request with the same key replays the first successful response. Notifications
for committed transitions are sent in the background once the action returns.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, HTTPException, Query, status
from starlette.requests import Request

from src.assignx.api.dependencies import (
    AuditServiceDep,
    CurrentActor,
    LifecycleServiceDep,
    QualityGateServiceDep,
)
from src.assignx.core.config import get_settings
from src.assignx.core.idempotency import (
    get_cached_response,
    idempotency_cache_key,
    store_response,
)
from src.assignx.core.logging import bind_project_context, get_logger
from src.assignx.lifecycle import ActionTimeoutError, Actor
from src.assignx.models.enums import ProjectStatus, Role
from src.assignx.models.project import Project
from src.assignx.schemas.audit import AuditLogRead
from src.assignx.schemas.pagination import PaginatedResponse
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
from src.assignx.services import TransitionRunner
from src.assignx.services.notification_service import dispatch_in_background

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

IdempotencyKey = Annotated[
    str | None,
    Header(alias="Idempotency-Key", max_length=255, description="Replays the first response"),
]

LIFECYCLE_ERRORS = {
    403: {"description": "Role may not perform this action, or not a party to the project"},
    404: {"description": "Project not found"},
    409: {"description": "Invalid transition or project state already changed"},
    422: {"description": "Precondition failed"},
    504: {"description": "Action timed out"},
}


async def _run_action(
    request: Request,
    actor: Actor,
    project_id: UUID,
    idempotency_key: str | None,
    service: TransitionRunner,
    action: Callable[[], Awaitable[Project]],
) -> ProjectRead:
    """Run a lifecycle action with a deadline and idempotent replay.

    The deadline covers the business transaction only. Notices the action
    committed are handed off after it, even when the caller sees a timeout.
    """
    bind_project_context(project_id)

    cache_key = None
    if idempotency_key and actor.id is not None:
        cache_key = idempotency_cache_key(actor.id, request.url.path, idempotency_key)
        try:
            cached = await get_cached_response(cache_key)
        except Exception as e:
            logger.warning("Idempotency lookup failed", error=str(e))
            cached = None
        if cached is not None:
            logger.info("Replaying idempotent response", path=request.url.path)
            return ProjectRead.model_validate(cached)

    try:
        async with asyncio.timeout(get_settings().action_timeout_seconds):
            project = await action()
    except TimeoutError as e:
        raise ActionTimeoutError(
            "The action did not complete in time",
            attempted=request.url.path.rsplit("/", 1)[-1],
        ) from e
    finally:
        dispatch_in_background(service.take_outbox())

    body = ProjectRead.model_validate(project)
    if cache_key is not None:
        try:
            await store_response(cache_key, body.model_dump(mode="json"))
        except Exception as e:
            logger.warning("Failed to store idempotent response", error=str(e))
    return body


# ---- orders --------------------------------------------------------------


@router.get(
    "",
    response_model=PaginatedResponse[ProjectRead],
    summary="List projects",
    description="Projects the caller is a party to. Supervisors also see unclaimed submissions.",
)
async def list_projects(
    actor: CurrentActor,
    service: LifecycleServiceDep,
    status_filter: Annotated[ProjectStatus | None, Query(alias="status")] = None,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100, description="Max items to return")] = 50,
) -> PaginatedResponse[ProjectRead]:
    projects, next_cursor, has_more = await service.list_projects(actor, status_filter, cursor, limit)
    return PaginatedResponse(
        items=[ProjectRead.model_validate(p) for p in projects],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.post(
    "",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    responses={403: {"description": "Only clients may create projects"}},
)
async def create_project(
    data: ProjectCreate, actor: CurrentActor, service: LifecycleServiceDep
) -> ProjectRead:
    project = await service.create_project(actor, data)
    return ProjectRead.model_validate(project)


@router.get("/{project_id}", response_model=ProjectRead, responses={404: {"description": "Project not found"}})
async def get_project(
    project_id: UUID, actor: CurrentActor, service: LifecycleServiceDep
) -> ProjectRead:
    return ProjectRead.model_validate(await service.get_project(project_id, actor))


@router.patch("/{project_id}", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    actor: CurrentActor,
    service: LifecycleServiceDep,
) -> ProjectRead:
    """Edit order details while the project is a draft."""
    return ProjectRead.model_validate(await service.update_draft(project_id, actor, data))


@router.get("/{project_id}/history", response_model=list[StatusHistoryRead])
async def get_history(
    project_id: UUID, actor: CurrentActor, service: LifecycleServiceDep
) -> list[StatusHistoryRead]:
    """Status timeline, oldest first."""
    history = await service.get_history(project_id, actor)
    return [StatusHistoryRead.model_validate(h) for h in history]


@router.get("/{project_id}/next-actions", response_model=NextActionsResponse)
async def get_next_actions(
    project_id: UUID, actor: CurrentActor, service: LifecycleServiceDep
) -> NextActionsResponse:
    """Events the caller's role may fire from the project's current status."""
    project = await service.get_project(project_id, actor)
    return NextActionsResponse(
        status=ProjectStatus(project.status),
        next_actions=await service.get_next_actions(project_id, actor),
    )


@router.get("/{project_id}/audit", response_model=PaginatedResponse[AuditLogRead])
async def get_audit_trail(
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    audit: AuditServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> PaginatedResponse[AuditLogRead]:
    """Sensitive actions recorded against the project (overrides, payments, denials)."""
    if actor.role != Role.SUPERVISOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Supervisor role required for this operation",
        )
    await service.get_project(project_id, actor)
    logs, next_cursor, has_more = await audit.list_entity_history("project", project_id, cursor, limit)
    return PaginatedResponse(
        items=[AuditLogRead.model_validate(log) for log in logs],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get("/{project_id}/deliverables", response_model=list[DeliverableRead])
async def list_deliverables(
    project_id: UUID, actor: CurrentActor, service: LifecycleServiceDep
) -> list[DeliverableRead]:
    items = await service.list_deliverables(project_id, actor)
    return [DeliverableRead.model_validate(d) for d in items]


@router.post(
    "/{project_id}/deliverables",
    response_model=DeliverableRead,
    status_code=status.HTTP_201_CREATED,
    responses=LIFECYCLE_ERRORS,
)
async def add_deliverable(
    project_id: UUID,
    data: DeliverableCreate,
    actor: CurrentActor,
    service: LifecycleServiceDep,
) -> DeliverableRead:
    """Register an uploaded file. The first upload starts work."""
    bind_project_context(project_id)
    try:
        deliverable = await service.add_deliverable(
            project_id,
            actor,
            file_url=data.file_url,
            file_name=data.file_name,
            file_type=data.file_type,
            file_size_bytes=data.file_size_bytes,
        )
    finally:
        dispatch_in_background(service.take_outbox())
    return DeliverableRead.model_validate(deliverable)


@router.get("/{project_id}/revisions", response_model=list[RevisionRead])
async def list_revisions(
    project_id: UUID, actor: CurrentActor, service: LifecycleServiceDep
) -> list[RevisionRead]:
    items = await service.list_revisions(project_id, actor)
    return [RevisionRead.model_validate(r) for r in items]


# ---- client actions ------------------------------------------------------


@router.post("/{project_id}/submit", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def submit(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.submit(project_id, actor),
    )


@router.post("/{project_id}/request-payment", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def request_payment(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.request_payment(project_id, actor),
    )


@router.post("/{project_id}/approve", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def approve_delivery(
    request: Request,
    project_id: UUID,
    data: ApproveDeliveryRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Accept the delivered work. Completes the project and creates payouts."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.approve_delivery(project_id, actor, data.grade, data.feedback),
    )


@router.post("/{project_id}/request-revision", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def request_revision(
    request: Request,
    project_id: UUID,
    data: RevisionRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Dispute the delivery. Stops the auto-approval timer."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.request_revision(project_id, actor, data.feedback),
    )


@router.post("/{project_id}/cancel", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def cancel(
    request: Request,
    project_id: UUID,
    data: ReasonRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.cancel(project_id, actor, data.reason),
    )


# ---- supervisor actions --------------------------------------------------


@router.post("/{project_id}/start-analysis", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def start_analysis(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Claim a submitted project."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.start_analysis(project_id, actor),
    )


@router.post("/{project_id}/quote", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def quote(
    request: Request,
    project_id: UUID,
    data: QuoteRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.quote(
            project_id,
            actor,
            complexity_tier=data.complexity_tier,
            base_rate=data.base_rate,
            unit_count=data.unit_count,
            urgency_tier=data.urgency_tier,
        ),
    )


@router.post("/{project_id}/start-assignment", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def start_assignment(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.start_assignment(project_id, actor),
    )


@router.post("/{project_id}/propose-doer", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def propose_doer(
    request: Request,
    project_id: UUID,
    data: DoerRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.propose_doer(project_id, actor, data.doer_id),
    )


@router.post("/{project_id}/assign-doer", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def assign_doer(
    request: Request,
    project_id: UUID,
    data: DoerRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Assign a doer directly, without waiting for acceptance."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.assign_doer_override(project_id, actor, data.doer_id),
    )


@router.post("/{project_id}/extend-deadline", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def extend_deadline(
    request: Request,
    project_id: UUID,
    data: DeadlineExtensionRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.extend_deadline(project_id, actor, data.new_deadline, data.reason),
    )


@router.post("/{project_id}/settlement-override", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def override_settlement(
    request: Request,
    project_id: UUID,
    data: SettlementOverrideRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Reprice a paid project. Recorded in the audit log."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.override_settlement(project_id, actor, data.client_quote, data.reason),
    )


@router.post("/{project_id}/refund", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def refund(
    request: Request,
    project_id: UUID,
    data: ReasonRequest,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.refund(project_id, actor, data.reason),
    )


# ---- quality check -------------------------------------------------------


@router.post("/{project_id}/qc/start", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def start_qc(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: QualityGateServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.start_qc(project_id, actor),
    )


@router.post(
    "/{project_id}/qc/scores",
    response_model=list[QualityReportRead],
    status_code=status.HTTP_201_CREATED,
    responses=LIFECYCLE_ERRORS,
)
async def record_quality_scores(
    project_id: UUID,
    data: QualityScoresRequest,
    actor: CurrentActor,
    service: QualityGateServiceDep,
) -> list[QualityReportRead]:
    bind_project_context(project_id)
    try:
        reports = await service.record_quality_scores(
            project_id,
            actor,
            plagiarism_score=data.plagiarism_score,
            ai_score=data.ai_score,
            notes=data.notes,
            tool_used=data.tool_used,
        )
    finally:
        dispatch_in_background(service.take_outbox())
    return [QualityReportRead.model_validate(r) for r in reports]


@router.post("/{project_id}/qc/approve", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def approve_qc(
    request: Request,
    project_id: UUID,
    data: QcDecisionRequest,
    actor: CurrentActor,
    service: QualityGateServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Approve the submission and deliver it to the client."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.approve_qc(project_id, actor, data.notes),
    )


@router.post("/{project_id}/qc/reject", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def reject_qc(
    request: Request,
    project_id: UUID,
    data: ReasonRequest,
    actor: CurrentActor,
    service: QualityGateServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Send the work back to the doer for revision."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.reject_qc(project_id, actor, data.reason),
    )


@router.post("/{project_id}/qc/request-revision", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def request_revision_after_rejection(
    request: Request,
    project_id: UUID,
    data: RevisionRequest,
    actor: CurrentActor,
    service: QualityGateServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.request_revision_after_rejection(project_id, actor, data.feedback),
    )


# ---- doer actions --------------------------------------------------------


@router.post("/{project_id}/accept", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def accept_assignment(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    """Accept a task the supervisor proposed."""
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.accept_assignment(project_id, actor),
    )


@router.post("/{project_id}/start-work", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def start_work(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.start_work(project_id, actor),
    )


@router.post("/{project_id}/submit-for-qc", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def submit_for_qc(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.submit_for_qc(project_id, actor),
    )


@router.post("/{project_id}/begin-revision", response_model=ProjectRead, responses=LIFECYCLE_ERRORS)
async def begin_revision(
    request: Request,
    project_id: UUID,
    actor: CurrentActor,
    service: LifecycleServiceDep,
    idempotency_key: IdempotencyKey = None,
) -> ProjectRead:
    return await _run_action(
        request,
        actor,
        project_id,
        idempotency_key,
        service,
        lambda: service.begin_revision(project_id, actor),
    )
