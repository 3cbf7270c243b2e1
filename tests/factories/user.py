"""User factories for test data generation."""

from functools import cache

from polyfactory import Use

from src.assignx.core.security import hash_password
from src.assignx.models import RefreshToken, User
from src.assignx.models.enums import Role
from tests.factories.base import BaseFactory, generate_uuid, utc_now

# Default test password - stored for convenience in tests
DEFAULT_TEST_PASSWORD = "correct-horse-battery-staple-42"


@cache
def default_password_hash() -> str:
    """Argon2 is slow on purpose; hash the shared test password once."""
    return hash_password(DEFAULT_TEST_PASSWORD)


class UserFactory(BaseFactory):
    """Factory for generating User test data."""

    __model__ = User

    id = Use(generate_uuid)
    email = Use(lambda: f"user_{generate_uuid().hex[-8:]}@example.com")
    hashed_password = Use(default_password_hash)
    full_name = "Test User"
    role = Role.CLIENT.value
    is_active = True
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def client(cls, **kwargs):
        return cls.build(
            role=Role.CLIENT.value, full_name=kwargs.pop("full_name", "Casey Client"), **kwargs
        )

    @classmethod
    def supervisor(cls, **kwargs):
        return cls.build(
            role=Role.SUPERVISOR.value, full_name=kwargs.pop("full_name", "Sam Supervisor"), **kwargs
        )

    @classmethod
    def doer(cls, **kwargs):
        return cls.build(
            role=Role.DOER.value, full_name=kwargs.pop("full_name", "Dana Doer"), **kwargs
        )

    @classmethod
    def inactive(cls, **kwargs):
        """Create an inactive user."""
        return cls.build(is_active=False, **kwargs)


class RefreshTokenFactory(BaseFactory):
    __model__ = RefreshToken

    id = Use(generate_uuid)
    user_id = None
    token_hash = Use(lambda: generate_uuid().hex)
    expires_at = Use(utc_now)
    created_at = Use(utc_now)
    revoked = False
