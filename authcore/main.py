"""Composition root: builds the auth service from settings."""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncEngine

from authcore.config import Settings, settings
from authcore.database import create_db_engine, create_session_factory
from authcore.services.auth import AuthService, PasswordHasher, ResetWorkflow, TokenIssuer

logger = logging.getLogger(__name__)


def configure_logging(app_settings: Settings = settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_auth_service(
    app_settings: Settings = settings, engine: AsyncEngine | None = None
) -> AuthService:
    """Wire hasher, token issuer, reset workflow and facade over one engine."""
    if engine is None:
        engine = create_db_engine(app_settings.database_url)
    session_factory = create_session_factory(engine)

    hasher = PasswordHasher(rounds=app_settings.bcrypt_rounds)
    token_issuer = TokenIssuer(
        app_settings.jwt_secret_key,
        algorithm=app_settings.jwt_algorithm,
        expires_delta=timedelta(minutes=app_settings.access_token_expire_minutes),
    )
    reset_workflow = ResetWorkflow(
        session_factory,
        hasher,
        reset_token_ttl=timedelta(minutes=app_settings.reset_token_expire_minutes),
    )

    logger.info(f"Auth service configured ({app_settings.environment})")
    return AuthService(session_factory, hasher, token_issuer, reset_workflow)
