"""Services layer - business logic.

This module is organized into domain-based subpackages:
- auth/: Authentication, session tokens and password reset
- repositories/: Data access layer

Common imports for convenience:
    from authcore.services import AuthService, UserRepository
"""

from authcore.services.auth import (
    AuthService,
    PasswordHasher,
    ResetWorkflow,
    SecurityAuditService,
    SecurityEventType,
    TokenIssuer,
)
from authcore.services.repositories import UserRepository

__all__ = [
    "AuthService",
    "PasswordHasher",
    "ResetWorkflow",
    "SecurityAuditService",
    "SecurityEventType",
    "TokenIssuer",
    "UserRepository",
]
