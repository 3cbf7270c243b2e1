"""Pure lifecycle domain: state machine, settlement and errors.

Nothing here touches the database; services wire it to repositories.
"""

from src.assignx.lifecycle.actors import Actor
from src.assignx.lifecycle.errors import (
    ActionTimeoutError,
    ConcurrentTransitionError,
    InvalidTransitionError,
    LifecycleError,
    PreconditionFailedError,
    ProjectNotFoundError,
    TransitionNotPermittedError,
)
from src.assignx.lifecycle.ownership import WRITABLE_FIELDS, check_writable
from src.assignx.lifecycle.settlement import (
    Settlement,
    calculate_settlement,
    default_rate_and_count,
    split_quote,
    to_money,
    urgency_tier_for,
)
from src.assignx.lifecycle.states import (
    PAID_STATES,
    TERMINAL_STATES,
    TRANSITION_TABLE,
    WORK_STARTED_STATES,
    ProjectEvent,
    allowed_events,
    apply_event,
    is_terminal,
    next_actions,
)

__all__ = [
    "Actor",
    # Errors
    "ActionTimeoutError",
    "ConcurrentTransitionError",
    "InvalidTransitionError",
    "LifecycleError",
    "PreconditionFailedError",
    "ProjectNotFoundError",
    "TransitionNotPermittedError",
    # Settlement
    "Settlement",
    "calculate_settlement",
    "default_rate_and_count",
    "split_quote",
    "to_money",
    "urgency_tier_for",
    # Ownership
    "WRITABLE_FIELDS",
    "check_writable",
    # State machine
    "PAID_STATES",
    "TERMINAL_STATES",
    "TRANSITION_TABLE",
    "WORK_STARTED_STATES",
    "ProjectEvent",
    "allowed_events",
    "apply_event",
    "is_terminal",
    "next_actions",
]
