from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BlacklistCreate(BaseModel):
    doer_id: UUID
    reason: str | None = Field(default=None, max_length=1000)


class BlacklistRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    supervisor_id: UUID
    doer_id: UUID
    reason: str | None
    created_at: datetime
