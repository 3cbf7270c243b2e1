"""Tests for password hashing, tokens and signup validation."""

from datetime import timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.assignx.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    hash_token,
    verify_password,
)
from src.assignx.schemas.auth import RegisterRequest

pytestmark = pytest.mark.unit


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("correct-horse-battery-staple")

        assert hashed.startswith("$argon2id$")
        assert verify_password("correct-horse-battery-staple", hashed)

    def test_wrong_password(self):
        hashed = hash_password("correct-horse-battery-staple")

        assert not verify_password("wrong-horse", hashed)

    def test_garbage_hash_is_rejected_not_raised(self):
        assert not verify_password("anything", "not-a-hash")


class TestTokens:
    def test_access_token_carries_role(self):
        user_id = uuid4()

        payload = decode_token(create_access_token(user_id, "supervisor"))

        assert payload is not None
        assert payload["sub"] == str(user_id)
        assert payload["role"] == "supervisor"
        assert payload["type"] == "access"

    def test_expired_token_is_rejected(self):
        token = create_access_token(uuid4(), "client", expires_delta=timedelta(seconds=-1))

        assert decode_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token(uuid4(), "client")

        assert decode_token(token[:-2] + "xx") is None

    def test_refresh_tokens_are_unique(self):
        user_id = uuid4()

        first, expires_at = create_refresh_token(user_id)
        second, _ = create_refresh_token(user_id)

        assert first != second
        assert expires_at.tzinfo is None
        assert decode_token(first)["type"] == "refresh"

    def test_hash_token_is_stable(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64


class TestRegisterRequest:
    def test_strong_password_accepted(self):
        request = RegisterRequest(
            email="doer@example.com",
            password="correct-horse-battery-staple",
            full_name="Dana Doer",
            role="doer",
        )

        assert request.role == "doer"

    def test_role_defaults_to_client(self):
        request = RegisterRequest(
            email="client@example.com", password="Xk9$mP2vL#nQ8wR", full_name="Chris Client"
        )

        assert request.role == "client"

    @pytest.mark.parametrize("password", ["password123", "qwerty12345", "aaaaaaaa"])
    def test_weak_password_rejected(self, password):
        with pytest.raises(ValidationError, match="[Ww]eak password|too weak"):
            RegisterRequest(email="x@example.com", password=password, full_name="X")

    def test_system_role_cannot_register(self):
        with pytest.raises(ValidationError):
            RegisterRequest(
                email="x@example.com",
                password="correct-horse-battery-staple",
                full_name="X",
                role="system",
            )
