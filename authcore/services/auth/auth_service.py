"""Authentication facade: register, login, session verification and password reset."""

import logging
from typing import NoReturn

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authcore.database import unit_of_work
from authcore.exceptions import (
    AuthenticationFailedError,
    DuplicateUsernameError,
    NotFoundError,
    ResetTokenInvalidError,
    UsernameTakenError,
    ValidationError,
)
from authcore.models import SecurityEventType, User
from authcore.schemas.auth import PasswordUpdate, SessionClaims, UserRegister
from authcore.services.auth.password_hasher import PasswordHasher
from authcore.services.auth.reset_workflow import ResetWorkflow
from authcore.services.auth.security_audit_service import SecurityAuditService
from authcore.services.auth.token_issuer import TokenIssuer
from authcore.services.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def _validate(schema: type[BaseModel], **fields) -> BaseModel:
    """Validate input against a schema, raising our ValidationError."""
    try:
        return schema(**fields)
    except PydanticValidationError as e:
        invalid = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise ValidationError(f"Invalid {', '.join(invalid)}", fields=invalid) from e


class AuthService:
    """Entry point for callers.

    Errors that would tell an untrusted caller whether an account exists, or
    why a reset token was refused, are collapsed here. The precise reason is
    kept in the security audit log.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        reset_workflow: ResetWorkflow,
    ) -> None:
        self._session_factory = session_factory
        self._hasher = hasher
        self._token_issuer = token_issuer
        self._reset_workflow = reset_workflow

    async def register(self, username: str, password: str) -> str:
        """Create a user and return a session token."""
        _validate(UserRegister, username=username, password=password)
        password_hash = await self._hasher.hash(password)

        try:
            async with unit_of_work(self._session_factory) as db:
                user = await UserRepository(db).create_user(username, password_hash)
                SecurityAuditService.log_event(
                    db, SecurityEventType.USER_REGISTERED, user_id=user.id, username=username
                )
        except DuplicateUsernameError as e:
            logger.info(f"Registration rejected, username taken: {username}")
            raise UsernameTakenError(username=username) from e

        logger.info(f"User registered: {username}")
        return self._token_issuer.issue(user)

    async def login(self, username: str, password: str) -> str:
        """Check credentials and return a session token."""
        user = await self._authenticate(username, password)
        await SecurityAuditService.record_event(
            self._session_factory,
            SecurityEventType.LOGIN_SUCCESS,
            user_id=user.id,
            username=username,
        )
        logger.info(f"User logged in: {username}")
        return self._token_issuer.issue(user)

    def verify_session(self, token: str) -> SessionClaims:
        """Decode a session token issued by login or register."""
        return self._token_issuer.verify(token)

    async def change_password(
        self, username: str, current_password: str, new_password: str
    ) -> None:
        """Replace the password after checking the current one.

        The check and the write share one transaction with the user's row
        locked, and the write only applies while the hash that was checked is
        still stored. A reset that lands in between wins, and this call fails
        like a wrong current password. Any outstanding reset token is cleared.
        """
        _validate(PasswordUpdate, new_password=new_password)

        async with unit_of_work(self._session_factory) as db:
            repo = UserRepository(db)
            user, failure = await self._check_credentials(
                repo, username, current_password, for_update=True
            )
            if failure is None:
                new_hash = await self._hasher.hash(new_password)
                if await repo.update_password(user.id, new_hash, expected_hash=user.password_hash):
                    await repo.clear_reset_token(user.id)
                    SecurityAuditService.log_event(
                        db,
                        SecurityEventType.PASSWORD_CHANGED,
                        user_id=user.id,
                        username=username,
                    )
                else:
                    failure = "password_changed_concurrently"

        if failure is not None:
            await self._reject_login(user, username, failure)

        logger.info(f"Password changed for user: {username}")

    async def initiate_reset(self, username: str) -> str:
        """Start a password reset and return the raw token, once.

        Raises NotFoundError for an unknown username; callers that must not
        reveal which usernames exist should handle that themselves.
        """
        return await self._reset_workflow.initiate(username)

    async def complete_reset(self, username: str, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        Every refusal, including an unknown username, comes out as the same
        ResetTokenInvalidError.
        """
        _validate(PasswordUpdate, new_password=new_password)
        try:
            await self._reset_workflow.complete(username, token, new_password)
        except (NotFoundError, ResetTokenInvalidError):
            raise ResetTokenInvalidError() from None

    async def _authenticate(self, username: str, password: str) -> User:
        """Return the user if the password matches, else AuthenticationFailedError."""
        async with unit_of_work(self._session_factory) as db:
            user, failure = await self._check_credentials(UserRepository(db), username, password)

        if failure is not None:
            await self._reject_login(user, username, failure)
        return user

    async def _check_credentials(
        self,
        repo: UserRepository,
        username: str,
        password: str,
        *,
        for_update: bool = False,
    ) -> tuple[User | None, str | None]:
        """Look up and verify. Returns the user and the failure reason, if any."""
        user = await repo.find_by_username(username, for_update=for_update)
        if user is None:
            # Perform dummy password verification to prevent timing-based username enumeration
            await self._hasher.verify_dummy(password)
            return None, "user_not_found"

        if not await self._hasher.verify(password, user.password_hash):
            return user, "invalid_password"
        return user, None

    async def _reject_login(self, user: User | None, username: str, reason: str) -> NoReturn:
        """Audit a failed credential check, after its transaction has ended, and raise."""
        await SecurityAuditService.record_event(
            self._session_factory,
            SecurityEventType.LOGIN_FAILED,
            user_id=user.id if user is not None else None,
            username=username,
            details={"reason": reason},
        )
        raise AuthenticationFailedError()
