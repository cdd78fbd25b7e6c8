"""Pydantic schemas for user endpoints."""

import re
from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field, field_validator

from account_service.schemas.auth import CamelModel

SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'
# bcrypt only accepts the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "must contain at least one uppercase letter"),
    (re.compile(r"\d"), "must contain at least one digit"),
    (re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]"), "must contain at least one special character"),
)


def check_password_strength(value: str) -> str:
    if len(value) < 8:
        raise ValueError("password must be at least 8 characters long")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes long")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(value):
            raise ValueError(f"password {message}")
    return value


class CreateUserRequest(CamelModel):
    username: str = Field(min_length=1, max_length=256)
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class ResetPasswordRequest(CamelModel):
    old_password: str | None = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class UserResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    is_verified: bool
    login_times: int
    has_password: bool
    created_at: datetime
    updated_at: datetime


class UserStatisticsResponse(CamelModel):
    users_count: int
    today_login_times: int
    last_7_days_avg_login_times: float = Field(alias="last7DaysAvgLoginTimes")


class MessageResponse(CamelModel):
    message: str
