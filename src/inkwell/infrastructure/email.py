"""SMTP transport.

``Mailer`` sends through fastapi-mail and is used by the background worker.
In test mode it logs the message instead of contacting the server.
``check_smtp_connection`` is the health probe: it opens a session,
authenticates when credentials are configured, and quits.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import aiosmtplib
import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from inkwell.core.config.settings import Settings

logger = structlog.get_logger(__name__)


def build_connection_config(settings: Settings) -> ConnectionConfig:
    password = settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else ""
    return ConnectionConfig(
        MAIL_USERNAME=settings.SMTP_USERNAME or "",
        MAIL_PASSWORD=password,
        MAIL_FROM=settings.FROM_EMAIL,
        MAIL_FROM_NAME=settings.FROM_NAME,
        MAIL_PORT=settings.SMTP_PORT,
        MAIL_SERVER=settings.SMTP_HOST,
        MAIL_STARTTLS=not settings.SMTP_SECURE,
        MAIL_SSL_TLS=settings.SMTP_SECURE,
        USE_CREDENTIALS=bool(settings.SMTP_USERNAME and password),
        TIMEOUT=settings.SMTP_TIMEOUT_SECONDS,
    )


class Mailer:
    def __init__(self, settings: Settings):
        self.test_mode = settings.EMAIL_TEST_MODE
        self._fastmail = None if self.test_mode else FastMail(build_connection_config(settings))

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        if self._fastmail is None:
            logger.info("email_test_mode_send", to=to, subject=subject, body=text)
            return

        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html or text,
            subtype=MessageType.html if html else MessageType.plain,
        )
        await self._fastmail.send_message(message)
        logger.info("email_sent", to=to, subject=subject)


async def check_smtp_connection(settings: Settings) -> None:
    """Raise if the SMTP server cannot be reached or rejects the credentials."""
    if settings.EMAIL_TEST_MODE:
        return

    client = aiosmtplib.SMTP(
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        use_tls=settings.SMTP_SECURE,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )
    await client.connect()
    try:
        if settings.SMTP_USERNAME and settings.SMTP_PASSWORD:
            await client.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD.get_secret_value())
    finally:
        try:
            await client.quit()
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
            logger.debug("smtp_quit_failed", error=str(exc))
