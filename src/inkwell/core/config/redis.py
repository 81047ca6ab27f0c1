"""
Redis store and rate limiting settings.
"""
import logging

from pydantic import Field, SecretStr, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the shared Redis connection and the rate limiter built on it.

    Reconnects back off linearly (REDIS_RETRY_DELAY_MS per failed attempt, capped
    at REDIS_MAX_RETRY_DELAY_MS) and give up after REDIS_MAX_RETRIES. With
    REDIS_ENABLE_OFFLINE_QUEUE disabled, commands issued while the connection is
    down fail immediately instead of waiting for a reconnect.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_DB: int = Field(ge=0, default=0)
    REDIS_USERNAME: str = ""
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_URL: str = Field(default="", validate_default=True)
    REDIS_KEY_PREFIX: str = ""

    REDIS_MAX_RETRIES: int = Field(ge=0, default=3)
    REDIS_RETRY_DELAY_MS: int = Field(ge=0, default=1000)
    REDIS_MAX_RETRY_DELAY_MS: int = Field(ge=0, default=5000)
    REDIS_CONNECT_TIMEOUT_MS: int = Field(ge=1, default=10000)
    REDIS_COMMAND_TIMEOUT_MS: int = Field(ge=1, default=5000)
    REDIS_KEEPALIVE_MS: int = Field(ge=0, default=30000)
    REDIS_ENABLE_OFFLINE_QUEUE: bool = True
    REDIS_LAZY_CONNECT: bool = False
    REDIS_ENABLE_READY_CHECK: bool = True
    REDIS_ENABLE_LOGGING: bool = False

    # Rate limiting settings
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_ATOMIC: bool = True
    RATE_LIMIT_FAIL_OPEN: bool = False

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        password = values.get("REDIS_PASSWORD")
        secret = password.get_secret_value() if isinstance(password, SecretStr) else password
        username = values.get("REDIS_USERNAME") or ""
        credentials = f"{username}:{secret}@" if secret else ""

        url = (
            f"{protocol}://{credentials}{values.get('REDIS_HOST')}:"
            f"{values.get('REDIS_PORT')}/{values.get('REDIS_DB', 0)}"
        )
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url

    @model_validator(mode="after")
    def validate_redis_password(self) -> "RedisSettings":
        """
        Ensures REDIS_PASSWORD is set for staging/production environments.
        """
        app_env = getattr(self, "APP_ENV", "development")
        if app_env in ("staging", "production") and not self.REDIS_PASSWORD.get_secret_value():
            logger.error(f"REDIS_PASSWORD must be set in {app_env} environment.")
            raise ValueError("REDIS_PASSWORD must be set in staging/production environments")
        return self
