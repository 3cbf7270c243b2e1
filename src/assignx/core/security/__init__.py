"""Security utilities.

Re-exports crypto helpers for convenience.
"""

from src.assignx.core.security.crypto import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    "DUMMY_PASSWORD_HASH",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "hash_password",
    "hash_token",
    "verify_password",
]
