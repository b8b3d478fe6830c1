"""Auth request/response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

BCRYPT_MAX_PASSWORD_BYTES = 72


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class CredentialsRequest(BaseModel):
    username: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=BCRYPT_MAX_PASSWORD_BYTES)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return value


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=512)
    expected_owner_id: str | None = Field(default=None, max_length=255)


class RevokeRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=512)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    access_expires_in: int
    refresh_expires_in: int
    owner_id: str
