"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import UserFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.user import (
    DEFAULT_TEST_PASSWORD,
    RefreshTokenFactory,
    UserFactory,
    default_password_hash,
)

__all__ = [
    # Base
    "BaseFactory",
    "generate_uuid",
    "utc_now",
    # User
    "DEFAULT_TEST_PASSWORD",
    "RefreshTokenFactory",
    "UserFactory",
    "default_password_hash",
]
