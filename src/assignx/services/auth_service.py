"""Authentication service - login, refresh token rotation and logout."""

import hmac
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.assignx.core.logging import get_logger
from src.assignx.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_token,
    verify_password,
)
from src.assignx.models.user import RefreshToken, User
from src.assignx.repositories import RefreshTokenRepository, UserRepository
from src.assignx.schemas.auth import LoginResponse

logger = get_logger(__name__)


class TokenType:
    ACCESS = "access"
    REFRESH = "refresh"


class AuthService:
    def __init__(
        self,
        user_repo: UserRepository,
        token_repo: RefreshTokenRepository,
        session: AsyncSession,
    ):
        self.user_repo = user_repo
        self.token_repo = token_repo
        self.session = session

    async def authenticate(self, email: str, password: str) -> tuple[User, LoginResponse] | None:
        """Check credentials and issue a token pair.

        Returns None for unknown users, wrong passwords and inactive accounts
        alike.
        """
        try:
            user = await self.user_repo.get_by_email(email.lower().strip())

            # Always verify so response time does not reveal whether the email exists
            password_hash = user.hashed_password if user else DUMMY_PASSWORD_HASH
            password_valid = verify_password(password, password_hash)

            if user is None or not password_valid or not user.is_active:
                return None

            access_token = create_access_token(user.id, user.role)
            refresh_token, expires_at = create_refresh_token(user.id)

            self.token_repo.add(
                RefreshToken(
                    user_id=user.id,
                    token_hash=hash_token(refresh_token),
                    expires_at=expires_at,
                )
            )
            await self.session.commit()

            return user, LoginResponse(access_token=access_token, refresh_token=refresh_token)
        except Exception:
            await self.session.rollback()
            raise

    async def refresh_access_token(self, refresh_token: str) -> tuple[str, str] | None:
        """Rotate a refresh token.

        The old token is revoked under a row lock before the new pair is
        issued, so a replayed token can be used at most once.

        Returns:
            Tuple of (access_token, refresh_token) or None if validation fails
        """
        payload = decode_token(refresh_token)
        if payload is None or payload.get("type") != TokenType.REFRESH:
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None

        token_hash = hash_token(refresh_token)
        db_token = await self.token_repo.get_valid_by_hash(token_hash, for_update=True)
        if db_token is None:
            return None

        if not hmac.compare_digest(token_hash, db_token.token_hash):
            return None

        try:
            user = await self.user_repo.get_by_id(UUID(user_id))
            if user is None or not user.is_active:
                return None

            db_token.revoked = True
            self.token_repo.add(db_token)

            new_refresh_token, new_expires_at = create_refresh_token(user.id)
            self.token_repo.add(
                RefreshToken(
                    user_id=user.id,
                    token_hash=hash_token(new_refresh_token),
                    expires_at=new_expires_at,
                )
            )
            await self.session.commit()

            return create_access_token(user.id, user.role), new_refresh_token
        except Exception:
            await self.session.rollback()
            raise

    async def revoke_refresh_token(self, refresh_token: str) -> bool:
        """Revoke a refresh token. Returns True if successful."""
        try:
            token_hash = hash_token(refresh_token)
            db_token = await self.token_repo.get_by_hash(token_hash)
            if db_token is None:
                return False

            if not hmac.compare_digest(token_hash, db_token.token_hash):
                return False

            db_token.revoked = True
            self.token_repo.add(db_token)
            await self.session.commit()
            return True
        except Exception:
            await self.session.rollback()
            raise

    async def revoke_all_user_tokens(self, user_id: UUID) -> int:
        try:
            count = await self.token_repo.revoke_all_for_user(user_id)
            await self.session.commit()
            logger.info("Revoked all refresh tokens", user_id=str(user_id), count=count)
            return count
        except Exception:
            await self.session.rollback()
            raise
