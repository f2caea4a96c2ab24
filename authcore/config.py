"""Application configuration."""

from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SECRET = "change-me-in-production"  # noqa: S105


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./authcore.db"

    # Session tokens
    jwt_secret_key: str = PLACEHOLDER_SECRET  # Generate with: openssl rand -hex 32
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(default=60, gt=0)

    # Password reset (one hour unless overridden)
    reset_token_expire_minutes: int = Field(default=60, gt=0)

    # Hashing
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept level names in any case."""
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse insecure defaults in production."""
        if self.is_production:
            if not self.jwt_secret_key or self.jwt_secret_key == PLACEHOLDER_SECRET:
                raise ValueError("JWT_SECRET_KEY must be set in production")
            if "localhost" in self.database_url:
                raise ValueError("DATABASE_URL should not use localhost in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


settings = Settings()
