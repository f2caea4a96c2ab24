"""bcrypt hashing for passwords and reset tokens."""

import asyncio
import logging
import secrets

import bcrypt

from authcore.exceptions import HashFormatError, ValidationError
from authcore.schemas.auth import BCRYPT_MAX_BYTES

logger = logging.getLogger(__name__)


class PasswordHasher:
    """Adaptive, salted one-way hashing.

    Reset tokens go through the same hash as passwords, so nobody with database
    access can recover a usable token. bcrypt runs in a worker thread to keep
    the event loop free for other requests.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        self._dummy_hash: bytes | None = None

    def hash_sync(self, secret: str) -> str:
        """Hash a secret using bcrypt."""
        encoded = secret.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            raise ValidationError(
                f"Secret must be at most {BCRYPT_MAX_BYTES} bytes", field="secret"
            )
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify_sync(self, secret: str, hashed: str) -> bool:
        """Verify a secret against its hash. Raises HashFormatError for a malformed hash."""
        if not hashed:
            raise HashFormatError()
        encoded = secret.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            # Never hashed anything this long, so it cannot match
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except ValueError as e:
            logger.error(f"Password verification error: {e}")
            raise HashFormatError() from e

    async def hash(self, secret: str) -> str:
        return await asyncio.to_thread(self.hash_sync, secret)

    async def verify(self, secret: str, hashed: str) -> bool:
        return await asyncio.to_thread(self.verify_sync, secret, hashed)

    async def verify_dummy(self, secret: str) -> None:
        """Spend one verification on throwaway material.

        Used when the user doesn't exist so that lookup failures take as long as
        wrong passwords.
        """
        if self._dummy_hash is None:
            self._dummy_hash = await asyncio.to_thread(
                bcrypt.hashpw, secrets.token_bytes(16), bcrypt.gensalt(rounds=self._rounds)
            )
        candidate = secret.encode("utf-8")[:BCRYPT_MAX_BYTES]
        await asyncio.to_thread(bcrypt.checkpw, candidate, self._dummy_hash)
