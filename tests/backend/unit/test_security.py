"""
Unit tests for core.security module.
Tests password hashing, JWT token creation/validation.
"""
import pytest
import datetime as dt
import jwt
from chatconnect.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self):
        """Password hashing should produce different hashes (salt included)."""
        password = "TestPassword123"
        assert hash_password(password) != hash_password(password)

    def test_hash_password_is_not_plain_text(self):
        password = "TestPassword123"
        hashed = hash_password(password)
        assert isinstance(hashed, str)
        assert hashed != password

    def test_verify_password_correct_password(self):
        """verify_password should return True for correct password."""
        hashed = hash_password("TestPassword123")
        assert verify_password("TestPassword123", hashed) is True

    def test_verify_password_incorrect_password(self):
        """verify_password should return False for incorrect password."""
        hashed = hash_password("TestPassword123")
        assert verify_password("WrongPassword456", hashed) is False


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    def test_token_carries_user_id_and_username(self):
        token = create_access_token("test-user-456", "alice")
        payload = decode_access_token(token)
        assert payload["sub"] == "test-user-456"
        assert payload["username"] == "alice"

    def test_token_has_expiration_in_future(self):
        payload = decode_access_token(create_access_token("test-user-exp", "bob"))
        assert "iat" in payload
        assert payload["exp"] > dt.datetime.now(dt.timezone.utc).timestamp()

    def test_token_expiration_time(self):
        """Token expiration should match configured time."""
        payload = decode_access_token(create_access_token("test-user-time", "carol"))
        diff_minutes = (payload["exp"] - payload["iat"]) / 60
        assert abs(diff_minutes - ACCESS_TOKEN_EXPIRE_MINUTES) < 1

    def test_decode_access_token_invalid_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_secret(self):
        token = create_access_token("test-user-secret", "dave")
        with pytest.raises(jwt.InvalidSignatureError):
            jwt.decode(token, "wrong-secret", algorithms=["HS256"])
