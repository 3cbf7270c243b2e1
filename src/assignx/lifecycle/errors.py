"""Lifecycle domain errors.

Every error carries a machine-readable reason code, the status the project is
actually in, what was attempted, and the actions the caller may take instead.
The API layer maps them to HTTP responses in core.exceptions.
"""

from collections.abc import Iterable


class LifecycleError(Exception):
    """Base class for all lifecycle failures."""

    reason_code: str = "lifecycle_error"
    status_code: int = 400

    def __init__(
        self,
        message: str,
        *,
        reason_code: str | None = None,
        current_status: str | None = None,
        attempted: str | None = None,
        next_actions: Iterable[str] = (),
    ):
        super().__init__(message)
        self.message = message
        if reason_code is not None:
            self.reason_code = reason_code
        self.current_status = current_status
        self.attempted = attempted
        self.next_actions = sorted(next_actions)

    def to_dict(self) -> dict[str, object]:
        return {
            "detail": self.message,
            "reason_code": self.reason_code,
            "current_status": self.current_status,
            "attempted": self.attempted,
            "next_actions": self.next_actions,
        }


class InvalidTransitionError(LifecycleError):
    """The event has no edge out of the current status."""

    reason_code = "invalid_transition"
    status_code = 409


class TransitionNotPermittedError(LifecycleError):
    """The edge exists but the acting role may not fire it, or the actor is not a party."""

    reason_code = "not_permitted"
    status_code = 403


class PreconditionFailedError(LifecycleError):
    """The edge is allowed but a guard (blacklist, scores, reason...) is not satisfied."""

    reason_code = "precondition_failed"
    status_code = 422


class ConcurrentTransitionError(LifecycleError):
    """Another writer changed the status between read and check-and-set."""

    reason_code = "state_changed"
    status_code = 409


class ProjectNotFoundError(LifecycleError):
    reason_code = "project_not_found"
    status_code = 404


class ActionTimeoutError(LifecycleError):
    reason_code = "action_timeout"
    status_code = 504
