"""
Database connection settings.
"""
import logging

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class DatabaseSettings(BaseSettings):
    """
    Defines settings for connecting to the PostgreSQL database through asyncpg.

    Performance Note:
        - POSTGRES_POOL_SIZE is the number of connections kept open; together
          with POSTGRES_MAX_OVERFLOW it bounds the pool (2 + 8 = 10 by default).
        - POSTGRES_POOL_TIMEOUT bounds how long a request waits for a free
          connection, so pool exhaustion becomes an error instead of a hang.
    """
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "inkwell"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = Field(ge=1, le=65535, default=5432)
    POSTGRES_POOL_SIZE: int = Field(ge=1, default=2)
    POSTGRES_MAX_OVERFLOW: int = Field(ge=0, default=8)
    POSTGRES_POOL_TIMEOUT: float = Field(gt=0, default=5.0)
    POSTGRES_POOL_RECYCLE: int = Field(ge=1, default=30)
    POSTGRES_CONNECT_TIMEOUT_MS: int = Field(ge=1, default=5000)
    POSTGRES_STATEMENT_TIMEOUT_MS: int = Field(ge=1, default=30000)
    DATABASE_URL: str = Field(default="", validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the asyncpg connection URL if not provided explicitly.
        """
        if v:
            return v

        values = info.data
        password = values.get("POSTGRES_PASSWORD")
        secret = password.get_secret_value() if isinstance(password, SecretStr) else password
        if not secret:
            logger.warning("POSTGRES_PASSWORD not set during DATABASE_URL assembly.")

        url = (
            f"postgresql+asyncpg://{values.get('POSTGRES_USER')}:"
            f"{secret}@{values.get('POSTGRES_HOST')}:"
            f"{values.get('POSTGRES_PORT')}/{values.get('POSTGRES_DB')}"
        )
        logger.debug("Assembled DATABASE_URL (password masked for security).")
        return url
