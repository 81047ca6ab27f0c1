"""Email configuration settings for the Inkwell application.

This module defines the SMTP transport parameters used by the background
email worker and by the health probe.
"""

from typing import Optional

from pydantic import EmailStr, Field, SecretStr
from pydantic_settings import BaseSettings


class EmailSettings(BaseSettings):
    """SMTP configuration with secure defaults.

    Attributes:
        SMTP_HOST: SMTP server hostname
        SMTP_PORT: SMTP server port (587 for STARTTLS, 465 for implicit TLS)
        SMTP_SECURE: Use implicit TLS instead of STARTTLS
        SMTP_USERNAME: SMTP authentication username
        SMTP_PASSWORD: SMTP authentication password
        FROM_EMAIL: Default sender email address
        FROM_NAME: Default sender name
        EMAIL_TEST_MODE: Log outgoing mail instead of sending it
    """

    SMTP_HOST: str = Field(default="localhost", description="SMTP server hostname")
    SMTP_PORT: int = Field(default=587, ge=1, le=65535, description="SMTP server port")
    SMTP_SECURE: bool = Field(default=False, description="Use implicit TLS (port 465)")
    SMTP_USERNAME: Optional[str] = Field(default=None, description="SMTP authentication username")
    SMTP_PASSWORD: Optional[SecretStr] = Field(default=None, description="SMTP authentication password")
    SMTP_TIMEOUT_SECONDS: int = Field(default=10, ge=1)

    FROM_EMAIL: EmailStr = Field(default="noreply@example.com", description="Default sender email address")
    FROM_NAME: str = Field(default="Inkwell", description="Default sender name")

    EMAIL_TEST_MODE: bool = Field(
        default=False,
        description="Enable test mode (emails logged instead of sent)",
    )

    def validate_smtp_config(self) -> None:
        """Validate SMTP configuration for production use.

        Raises:
            ValueError: If SMTP credentials are missing outside test mode.
        """
        if self.EMAIL_TEST_MODE or getattr(self, "APP_ENV", "development") not in {"production", "staging"}:
            return

        if not self.SMTP_USERNAME or not self.SMTP_PASSWORD:
            raise ValueError("SMTP_USERNAME and SMTP_PASSWORD are required in production")
