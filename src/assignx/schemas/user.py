from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.assignx.models.enums import Role


class UserRead(BaseModel):
    id: UUID
    email: EmailStr
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = Field(None, min_length=8, max_length=100)
