"""Schemas for credential input and session token claims."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

# bcrypt only looks at the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


def _validate_password_length(v: str) -> str:
    """Shared password validation logic."""
    if len(v.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
    return v


class UserRegister(BaseModel):
    """Schema for user registration."""

    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _validate_password_length(v)


class PasswordUpdate(BaseModel):
    """Schema for a replacement password (reset or change)."""

    new_password: str = Field(min_length=1)

    @field_validator("new_password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        return _validate_password_length(v)


class SessionClaims(BaseModel):
    """Decoded claims of a verified session token."""

    user_id: str = Field(validation_alias="sub", min_length=1)
    username: str
    issued_at: datetime = Field(validation_alias="iat")
    expires_at: datetime = Field(validation_alias="exp")
