"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str
