from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class PaymentConfirmation(BaseModel):
    """Webhook body sent by the payment provider once a charge settles."""

    project_id: UUID
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_id: str = Field(min_length=1, max_length=100)
