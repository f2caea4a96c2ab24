"""Authentication services.

Handles password hashing, session tokens, password reset and security audit logging.
"""

from authcore.models import SecurityEventType

from .auth_service import AuthService
from .password_hasher import PasswordHasher
from .reset_workflow import ResetWorkflow
from .security_audit_service import SecurityAuditService
from .token_issuer import TokenIssuer

__all__ = [
    "AuthService",
    "PasswordHasher",
    "ResetWorkflow",
    "SecurityAuditService",
    "SecurityEventType",
    "TokenIssuer",
]
