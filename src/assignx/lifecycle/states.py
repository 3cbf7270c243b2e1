"""Project state machine.

The transition table is the single source of truth for which role may move a
project from which status to which. It is materialized as a total function
over (status, role): every pair has an entry, possibly empty.
"""

from enum import Enum
from types import MappingProxyType

from src.assignx.lifecycle.errors import InvalidTransitionError, TransitionNotPermittedError
from src.assignx.models.enums import ProjectStatus, Role


class ProjectEvent(str, Enum):
    """Named edges of the state machine."""

    SUBMIT = "submit"
    START_ANALYSIS = "start_analysis"
    QUOTE = "quote"
    REQUEST_PAYMENT = "request_payment"
    CONFIRM_PAYMENT = "confirm_payment"
    START_ASSIGNMENT = "start_assignment"
    ASSIGN_DOER = "assign_doer"
    START_WORK = "start_work"
    SUBMIT_FOR_QC = "submit_for_qc"
    START_QC = "start_qc"
    APPROVE_QC = "approve_qc"
    REJECT_QC = "reject_qc"
    DELIVER = "deliver"
    REQUEST_REVISION = "request_revision"
    BEGIN_REVISION = "begin_revision"
    APPROVE_DELIVERY = "approve_delivery"
    AUTO_APPROVE = "auto_approve"
    FINALIZE = "finalize"
    CANCEL = "cancel"
    REFUND = "refund"


S = ProjectStatus

TERMINAL_STATES: frozenset[ProjectStatus] = frozenset(
    {S.COMPLETED, S.AUTO_APPROVED, S.CANCELLED, S.REFUNDED}
)

# Statuses in which money has been collected and the split is frozen
PAID_STATES: frozenset[ProjectStatus] = frozenset(
    {
        S.PAID,
        S.ASSIGNING,
        S.ASSIGNED,
        S.IN_PROGRESS,
        S.SUBMITTED_FOR_QC,
        S.QC_IN_PROGRESS,
        S.QC_APPROVED,
        S.QC_REJECTED,
        S.DELIVERED,
        S.REVISION_REQUESTED,
        S.IN_REVISION,
        S.COMPLETED,
        S.AUTO_APPROVED,
    }
)

# Work has begun, a refund can only be partial
WORK_STARTED_STATES: frozenset[ProjectStatus] = PAID_STATES - {S.PAID, S.ASSIGNING, S.ASSIGNED}

_Edge = tuple[ProjectStatus, frozenset[Role]]

_EDGES: dict[tuple[ProjectStatus, ProjectEvent], _Edge] = {
    (S.DRAFT, ProjectEvent.SUBMIT): (S.SUBMITTED, frozenset({Role.CLIENT})),
    (S.SUBMITTED, ProjectEvent.START_ANALYSIS): (S.ANALYZING, frozenset({Role.SUPERVISOR})),
    (S.ANALYZING, ProjectEvent.QUOTE): (S.QUOTED, frozenset({Role.SUPERVISOR})),
    (S.QUOTED, ProjectEvent.REQUEST_PAYMENT): (S.PAYMENT_PENDING, frozenset({Role.CLIENT})),
    (S.PAYMENT_PENDING, ProjectEvent.CONFIRM_PAYMENT): (S.PAID, frozenset({Role.SYSTEM})),
    (S.PAID, ProjectEvent.START_ASSIGNMENT): (S.ASSIGNING, frozenset({Role.SUPERVISOR})),
    (S.ASSIGNING, ProjectEvent.ASSIGN_DOER): (
        S.ASSIGNED,
        frozenset({Role.DOER, Role.SUPERVISOR}),
    ),
    (S.ASSIGNED, ProjectEvent.START_WORK): (S.IN_PROGRESS, frozenset({Role.DOER, Role.SYSTEM})),
    (S.IN_PROGRESS, ProjectEvent.SUBMIT_FOR_QC): (S.SUBMITTED_FOR_QC, frozenset({Role.DOER})),
    (S.SUBMITTED_FOR_QC, ProjectEvent.START_QC): (S.QC_IN_PROGRESS, frozenset({Role.SUPERVISOR})),
    (S.QC_IN_PROGRESS, ProjectEvent.APPROVE_QC): (S.QC_APPROVED, frozenset({Role.SUPERVISOR})),
    (S.QC_IN_PROGRESS, ProjectEvent.REJECT_QC): (S.QC_REJECTED, frozenset({Role.SUPERVISOR})),
    (S.QC_APPROVED, ProjectEvent.DELIVER): (S.DELIVERED, frozenset({Role.SYSTEM})),
    (S.QC_REJECTED, ProjectEvent.REQUEST_REVISION): (
        S.REVISION_REQUESTED,
        frozenset({Role.SUPERVISOR, Role.SYSTEM}),
    ),
    (S.DELIVERED, ProjectEvent.REQUEST_REVISION): (S.REVISION_REQUESTED, frozenset({Role.CLIENT})),
    (S.REVISION_REQUESTED, ProjectEvent.BEGIN_REVISION): (S.IN_REVISION, frozenset({Role.DOER})),
    (S.IN_REVISION, ProjectEvent.SUBMIT_FOR_QC): (S.SUBMITTED_FOR_QC, frozenset({Role.DOER})),
    (S.DELIVERED, ProjectEvent.APPROVE_DELIVERY): (S.COMPLETED, frozenset({Role.CLIENT})),
    (S.DELIVERED, ProjectEvent.AUTO_APPROVE): (S.AUTO_APPROVED, frozenset({Role.SYSTEM})),
    (S.AUTO_APPROVED, ProjectEvent.FINALIZE): (S.COMPLETED, frozenset({Role.SYSTEM})),
}

for _status in ProjectStatus:
    if _status in TERMINAL_STATES:
        continue
    _EDGES[(_status, ProjectEvent.CANCEL)] = (
        S.CANCELLED,
        frozenset({Role.CLIENT, Role.SUPERVISOR}),
    )
    if _status in PAID_STATES:
        _EDGES[(_status, ProjectEvent.REFUND)] = (S.REFUNDED, frozenset({Role.SUPERVISOR}))


def _build_table() -> dict[tuple[ProjectStatus, Role], dict[ProjectEvent, ProjectStatus]]:
    table: dict[tuple[ProjectStatus, Role], dict[ProjectEvent, ProjectStatus]] = {
        (status, role): {} for status in ProjectStatus for role in Role
    }
    for (source, event), (target, roles) in _EDGES.items():
        for role in roles:
            table[(source, role)][event] = target
    return table


TRANSITION_TABLE = MappingProxyType(
    {key: MappingProxyType(events) for key, events in _build_table().items()}
)


def is_terminal(status: ProjectStatus | str) -> bool:
    return ProjectStatus(status) in TERMINAL_STATES


def allowed_events(status: ProjectStatus | str, role: Role | str) -> frozenset[ProjectEvent]:
    """Events the role may fire from the status."""
    return frozenset(TRANSITION_TABLE[(ProjectStatus(status), Role(role))])


def next_actions(status: ProjectStatus | str, role: Role | str) -> list[str]:
    """Sorted event names, as shown to API callers."""
    return sorted(event.value for event in allowed_events(status, role))


def apply_event(
    current: ProjectStatus | str,
    event: ProjectEvent | str,
    role: Role | str,
) -> ProjectStatus:
    """Resolve the status an event leads to, or raise.

    Raises:
        InvalidTransitionError: No edge for this event leaves the current status.
        TransitionNotPermittedError: The edge exists but not for this role.
    """
    current = ProjectStatus(current)
    event = ProjectEvent(event)
    role = Role(role)

    edge = _EDGES.get((current, event))
    if edge is None:
        raise InvalidTransitionError(
            f"Cannot {event.value} a project in status '{current.value}'",
            current_status=current.value,
            attempted=event.value,
            next_actions=next_actions(current, role),
        )

    target, roles = edge
    if role not in roles:
        raise TransitionNotPermittedError(
            f"Role '{role.value}' may not {event.value} a project in status '{current.value}'",
            current_status=current.value,
            attempted=event.value,
            next_actions=next_actions(current, role),
        )
    return target
