"""Per-role column ownership on the project record.

The repository checks every write against this map, so no code path can
let one party overwrite another party's fields.
"""

from collections.abc import Iterable

from src.assignx.lifecycle.errors import TransitionNotPermittedError
from src.assignx.models.enums import Role

# Maintained by every status write
ALWAYS_WRITABLE: frozenset[str] = frozenset({"status", "status_updated_at", "updated_at"})

_CANCELLATION = frozenset(
    {"cancelled_at", "cancelled_by", "cancellation_reason", "refund_eligibility"}
)

WRITABLE_FIELDS: dict[Role, frozenset[str]] = {
    Role.CLIENT: frozenset(
        {
            "title",
            "subject",
            "description",
            "word_count",
            "page_count",
            "reference_style",
            "service_type",
            "deadline",
            "client_approved",
            "client_approved_at",
            "client_feedback",
            "client_grade",
            "completed_at",
            "auto_approve_at",
        }
    )
    | _CANCELLATION,
    Role.SUPERVISOR: frozenset(
        {
            "supervisor_id",
            "supervisor_assigned_at",
            "urgency_tier",
            "complexity_tier",
            "client_quote",
            "proposed_doer_id",
            "doer_id",
            "doer_assigned_at",
            "plagiarism_score",
            "ai_score",
            "qc_notes",
            "deadline",
            "original_deadline",
            "deadline_extended",
            "deadline_extension_reason",
            "doer_payout",
            "supervisor_commission",
            "platform_fee",
        }
    )
    | _CANCELLATION,
    Role.DOER: frozenset(
        {
            "doer_id",
            "doer_assigned_at",
            "proposed_doer_id",
            "submitted_late",
            "submitted_for_qc_at",
        }
    ),
    Role.SYSTEM: frozenset(
        {
            "payment_id",
            "paid_at",
            "doer_payout",
            "supervisor_commission",
            "platform_fee",
            "delivered_at",
            "auto_approve_at",
            "completed_at",
            "client_approved",
            "client_approved_at",
        }
    ),
}


def check_writable(role: Role | str, fields: Iterable[str]) -> None:
    """Raise if the role does not own every field in the write."""
    role = Role(role)
    foreign = sorted(set(fields) - ALWAYS_WRITABLE - WRITABLE_FIELDS[role])
    if foreign:
        raise TransitionNotPermittedError(
            f"Role '{role.value}' may not write {', '.join(foreign)}",
            reason_code="field_not_writable",
        )
