from dataclasses import dataclass
from uuid import UUID

from src.assignx.models.enums import Role


@dataclass(frozen=True)
class Actor:
    """Who is performing an action: a user in a role, or the system."""

    id: UUID | None
    role: Role

    @classmethod
    def system(cls) -> "Actor":
        return cls(id=None, role=Role.SYSTEM)

    @property
    def is_system(self) -> bool:
        return self.role == Role.SYSTEM
