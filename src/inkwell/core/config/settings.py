"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, database, redis, auth, email, storage, queue) into a single, accessible
`Settings` class.

It loads settings from environment variables and .env files, validates them,
and provides a single `settings` object for use throughout the application.

Environment Support:
- Development: Uses .env, email test mode enabled
- Test: Uses .env.test, email test mode enabled
- Staging: Uses .env.staging, SMTP credentials required
- Production: Uses .env.production, SMTP credentials required
"""

import logging
import os
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .auth import AuthSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .queue import QueueSettings
from .redis import RedisSettings
from .storage import StorageSettings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)


class Settings(
    AppSettings,
    DatabaseSettings,
    RedisSettings,
    AuthSettings,
    EmailSettings,
    StorageSettings,
    QueueSettings,
):
    """The main settings class that aggregates all application configurations.

    Usage:
        - Access settings via the singleton instance `settings` throughout the application.
        - Tests build their own instance with keyword overrides.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env in ("development", "test"):
            self.EMAIL_TEST_MODE = True

        if env == "development":
            self.DEBUG = True

        logger.info(f"Application running in {env} environment")
        logger.debug(f"Email test mode: {self.EMAIL_TEST_MODE}")

    def validate_required_fields(self) -> None:
        """Validates configuration that cannot be expressed as field constraints.

        Raises:
            ValueError: If SMTP credentials are missing in staging/production.
        """
        self.validate_smtp_config()
        if self.APP_ENV in ("staging", "production") and self.REDIS_MAX_RETRY_DELAY_MS < self.REDIS_RETRY_DELAY_MS:
            raise ValueError("REDIS_MAX_RETRY_DELAY_MS must not be lower than REDIS_RETRY_DELAY_MS")
        logger.info("All required environment variables are set.")


def create_settings(**overrides) -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")

    env_files = {
        "development": ".env",
        "test": ".env.test",
        "staging": ".env.staging",
        "production": ".env.production",
    }

    env_file = env_files.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        return Settings(_env_file=env_file, **overrides)
    if Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
    else:
        logger.warning(f"No .env file found, using environment variables only (environment: {env})")
    return Settings(**overrides)


# Create a singleton instance of the settings to be used across the application.
settings = create_settings()
settings.validate_required_fields()
