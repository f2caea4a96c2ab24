"""Signed, time-boxed session tokens."""

import logging
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import ValidationError as PydanticValidationError

from authcore.exceptions import TokenInvalidError
from authcore.models import User
from authcore.schemas.auth import SessionClaims

logger = logging.getLogger(__name__)

TOKEN_TYPE = "access"


class TokenIssuer:
    """Issues and verifies JWT session tokens.

    Stateless: nothing is persisted, so a token stays valid until it expires.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = timedelta(hours=1),
    ) -> None:
        if not secret_key:
            raise ValueError("A signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expires_delta = expires_delta

    def issue(self, user: User, expires_delta: timedelta | None = None) -> str:
        """Create a signed token carrying the user's id and username."""
        if expires_delta is None:
            expires_delta = self._expires_delta

        now = datetime.now(UTC)
        payload = {
            "sub": user.id,
            "username": user.username,
            "iat": now,
            "exp": now + expires_delta,
            "type": TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Decode and validate a token. Raises TokenInvalidError on any problem."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            logger.debug("Token expired")
            raise TokenInvalidError(reason="expired") from e
        except jwt.InvalidTokenError as e:
            logger.debug(f"Invalid token: {e}")
            raise TokenInvalidError(reason="malformed") from e

        if payload.get("type") != TOKEN_TYPE:
            raise TokenInvalidError(reason="wrong_type")

        try:
            return SessionClaims.model_validate(payload)
        except PydanticValidationError as e:
            logger.debug(f"Token claims rejected: {e}")
            raise TokenInvalidError(reason="bad_claims") from e
