from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class EarningsSummary(BaseModel):
    """Totals over a doer's or supervisor's payout ledger."""

    total_earned: Decimal
    pending_amount: Decimal
    completed_projects: int
    average_payout: Decimal
    on_time_rate: float | None


class PayoutRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    recipient_role: str
    amount: Decimal
    status: str
    created_at: datetime
