"""
Unit tests for the security module and bearer-token authentication.
Tests password hashing, JWT token creation/validation and verification codes.
"""
import uuid
import pytest
from datetime import timedelta
from types import SimpleNamespace
from jose import jwt

from eventdesk.auth import authenticate
from eventdesk.core.config import settings
from eventdesk.core.errors import Unauthorized
from eventdesk.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_user_token,
    decode_token,
    generate_verification_code,
)
from eventdesk.db.models.user import RoleEnum


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        """Test that passwords are hashed."""
        password = "Test123!@#"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")  # bcrypt hash prefix

    def test_verify_password_correct(self):
        """Test verify password correct."""
        hashed = hash_password("Test123!@#")
        assert verify_password("Test123!@#", hashed) is True

    def test_verify_password_incorrect(self):
        """Test verify password incorrect."""
        hashed = hash_password("Test123!@#")
        assert verify_password("Wrong123!@#", hashed) is False

    def test_user_without_password_never_verifies(self):
        """Accounts created through the code flow have no hash."""
        assert verify_password("anything", None) is False
        assert verify_password("", "") is False


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token creation and decoding."""

    def test_create_access_token(self):
        """Test create access token."""
        data = {"sub": "user123", "role": "MANAGER"}
        token = create_access_token(data)

        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
        assert payload["sub"] == "user123"
        assert payload["role"] == "MANAGER"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_create_user_token_carries_identity(self):
        """Test create user token carries identity."""
        user = SimpleNamespace(id=uuid.uuid4(), email="mia@example.com", role=RoleEnum.MANAGER)
        payload = decode_token(create_user_token(user))

        assert payload["sub"] == str(user.id)
        assert payload["user_id"] == str(user.id)
        assert payload["email"] == "mia@example.com"
        assert payload["role"] == "MANAGER"

    def test_decode_invalid_token(self):
        """Test decode invalid token."""
        with pytest.raises(ValueError, match="Invalid token"):
            decode_token("invalid.token.here")

    def test_decode_expired_token(self):
        """Test decode expired token."""
        token = create_access_token({"sub": "user123"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(ValueError, match="Token has expired"):
            decode_token(token)

    def test_decode_token_missing_sub(self):
        """Test decode token missing sub."""
        token = jwt.encode({"role": "REGULAR", "type": "access"}, settings.SECRET_KEY, algorithm="HS256")

        with pytest.raises(ValueError, match="Invalid token payload"):
            decode_token(token)

    def test_token_signed_with_other_key_is_rejected(self):
        """Test token signed with other key is rejected."""
        token = jwt.encode({"sub": "user123", "type": "access"}, "some-other-key", algorithm="HS256")

        with pytest.raises(ValueError, match="Invalid token"):
            decode_token(token)


@pytest.mark.unit
class TestAuthenticate:
    """Test bearer token authentication."""

    def test_valid_token(self):
        """Test valid token."""
        user_id = uuid.uuid4()
        token = create_access_token({"sub": str(user_id), "email": "a@b.co", "role": "REGULAR"})

        data = authenticate(token)
        assert data.user_id == user_id
        assert data.email == "a@b.co"
        assert data.role == "REGULAR"

    def test_missing_token(self):
        """Test missing token."""
        with pytest.raises(Unauthorized) as exc:
            authenticate(None)
        assert exc.value.status_code == 401
        assert exc.value.detail == "No token provided"

    def test_expired_token(self):
        """Test expired token."""
        token = create_access_token({"sub": str(uuid.uuid4())}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(Unauthorized):
            authenticate(token)

    def test_wrong_token_type(self):
        """Test wrong token type."""
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "refresh"}, settings.SECRET_KEY, algorithm="HS256"
        )
        with pytest.raises(Unauthorized, match="Invalid token type"):
            authenticate(token)

    def test_non_uuid_subject(self):
        """Test non uuid subject."""
        token = create_access_token({"sub": "not-a-uuid"})
        with pytest.raises(Unauthorized, match="Invalid token payload"):
            authenticate(token)


@pytest.mark.unit
class TestVerificationCodes:

    def test_code_is_six_digits(self):
        """Test code is six digits."""
        for _ in range(50):
            code = generate_verification_code()
            assert len(code) == 6
            assert code.isdigit()
