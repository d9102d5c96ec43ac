"""Unit tests for Pydantic request and user models."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from auth_api.models.auth import LoginRequest, RegisterRequest
from auth_api.models.user import User, UserStatus


def _register_data(**overrides):
    data = {
        "username": "u1",
        "email": "u1@x.com",
        "display_name": "U One",
        "password": "Secret123!",
        "password_confirmation": "Secret123!",
    }
    data.update(overrides)
    return data


class TestRegisterRequest:
    def test_valid(self):
        request = RegisterRequest(**_register_data(phone_number="+15550100"))
        assert request.username == "u1"
        assert request.phone_number == "+15550100"

    def test_phone_number_optional(self):
        assert RegisterRequest(**_register_data()).phone_number is None

    @pytest.mark.parametrize("username", ["has space", "semi;colon", "x" * 51, ""])
    def test_bad_username(self, username):
        with pytest.raises(ValidationError):
            RegisterRequest(**_register_data(username=username))

    def test_bad_email(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**_register_data(email="nope"))
        assert exc_info.value.errors()[0]["loc"] == ("email",)

    def test_email_kept_as_typed(self):
        request = RegisterRequest(**_register_data(email="U1@X.COM"))
        assert request.email == "U1@X.COM"

    def test_overlong_email(self):
        local = "a" * 64
        domain = ".".join(["b" * 60] * 4) + ".com"
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**_register_data(email=f"{local}@{domain}"))
        assert exc_info.value.errors()[0]["loc"] == ("email",)

    def test_short_password(self):
        with pytest.raises(ValidationError):
            RegisterRequest(**_register_data(password="short", password_confirmation="short"))

    def test_whitespace_password(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**_register_data(password=" " * 10))
        assert any("whitespace" in str(e).lower() for e in exc_info.value.errors())

    def test_password_over_bcrypt_limit(self):
        long_password = "é" * 40  # 80 bytes in UTF-8
        with pytest.raises(ValidationError):
            RegisterRequest(**_register_data(password=long_password))

    def test_blank_display_name(self):
        with pytest.raises(ValidationError):
            RegisterRequest(**_register_data(display_name="   "))

    def test_long_phone_number(self):
        with pytest.raises(ValidationError):
            RegisterRequest(**_register_data(phone_number="1" * 21))


class TestLoginRequest:
    def test_requires_password(self):
        with pytest.raises(ValidationError):
            LoginRequest(email="u1@x.com", password="")

    def test_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            LoginRequest(email="not-an-email", password="x")

    def test_email_kept_as_typed(self):
        assert LoginRequest(email="U1@X.COM", password="x").email == "U1@X.COM"


class TestUser:
    def test_defaults(self):
        now = datetime.now(timezone.utc)
        user = User(
            id=uuid4(),
            username="u1",
            email="u1@x.com",
            display_name="U One",
            created_at=now,
            updated_at=now,
        )
        assert user.status == UserStatus.ACTIVE
        assert user.is_active
        assert user.last_seen is None

    def test_status_from_string(self):
        now = datetime.now(timezone.utc)
        user = User(
            id=uuid4(),
            username="u1",
            email="u1@x.com",
            display_name="U One",
            status="suspended",
            created_at=now,
            updated_at=now,
        )
        assert user.status == UserStatus.SUSPENDED
        assert not user.is_active
