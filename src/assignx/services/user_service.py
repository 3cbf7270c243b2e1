from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.assignx.core.logging import get_logger
from src.assignx.core.security import hash_password
from src.assignx.models.base import utc_now
from src.assignx.models.enums import Role
from src.assignx.models.user import User
from src.assignx.repositories import UserRepository
from src.assignx.schemas.user import UserUpdate

logger = get_logger(__name__)


class UserService:
    """User registration and profile management."""

    def __init__(self, user_repo: UserRepository, session: AsyncSession):
        self.user_repo = user_repo
        self.session = session

    async def register(self, email: str, password: str, full_name: str, role: Role) -> User:
        """Create a marketplace account.

        Raises:
            ValueError: The role is not self-registrable or the email is taken.
        """
        if role == Role.SYSTEM:
            raise ValueError("The system role cannot be registered")

        # Normalize email to lowercase to prevent case-sensitivity issues
        user = User(
            email=email.lower().strip(),
            hashed_password=hash_password(password),
            full_name=full_name,
            role=role.value,
        )
        self.user_repo.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ValueError("Email already registered") from e

        await self.session.refresh(user)
        logger.info("User registered", user_id=str(user.id), role=user.role)
        return user

    async def update(self, user: User, data: UserUpdate) -> User:
        """Update user with provided data."""
        update_data = data.model_dump(exclude_unset=True)

        if "password" in update_data:
            update_data["hashed_password"] = hash_password(update_data.pop("password"))

        for field, value in update_data.items():
            setattr(user, field, value)

        user.updated_at = utc_now()
        self.user_repo.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def deactivate(self, user: User) -> User:
        """Deactivate user account."""
        user.is_active = False
        user.updated_at = utc_now()
        self.user_repo.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user
