"""Pydantic schemas for input validation and token claims."""

from authcore.schemas.auth import PasswordUpdate, SessionClaims, UserRegister

__all__ = [
    "PasswordUpdate",
    "SessionClaims",
    "UserRegister",
]
