"""Application configuration using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation.
"""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoConfig(BaseSettings):
    """MongoDB configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    uri: str = Field(..., description="MongoDB connection URI")
    db_name: str = Field(default="arithmetic", description="Database name")

    # Collection names
    users_collection: str = Field(
        default="users",
        description="Collection for API users, keys and usage counters",
    )
    records_collection: str = Field(
        default="records",
        description="Collection for stored arithmetic records",
    )


class AppConfig(BaseSettings):
    """General application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    signature_max_age_seconds: int = Field(
        default=3600,
        description="Allowed clock skew between x-timestamp and server time",
    )
    rate_limit: str = Field(
        default="1000/minute",
        description="Per-client rate limit applied to /math endpoints",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound on time spent handling a single request",
    )

    # CORS configuration for browser clients (JSON lists in the environment)
    cors_origins: list[str] = Field(
        default=["*"],
        description="Origins allowed to call the API",
    )
    cors_allow_credentials: bool = Field(default=False)
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Load from .env
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    mongo: MongoConfig = Field(default_factory=MongoConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    def configure_logging(self) -> None:
        """Configure application logging based on settings."""
        numeric_level = getattr(logging, self.app.log_level.upper(), None)
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO

        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        # Quiet noisy third-party loggers
        for noisy_logger in (
            "pymongo",
            "pymongo.ocsp_support",
            "pymongo.pool",
            "pymongo.topology",
        ):
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance.

    Returns:
        Settings instance with loaded configuration.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.configure_logging()
    return _settings
