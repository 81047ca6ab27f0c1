"""Celery worker for outbound email.

Run with::

    celery -A inkwell.jobs.worker worker -Q email --loglevel INFO

Failed sends are retried with exponential backoff (2s, 4s, 8s) before the
task is given up.
"""

from __future__ import annotations

import asyncio
import html
from typing import Optional

import aiosmtplib
import structlog
from fastapi_mail.errors import ConnectionErrors

from inkwell.core.config.settings import settings
from inkwell.core.logging import configure_logging
from inkwell.infrastructure.email import Mailer
from inkwell.infrastructure.queue import SEND_EMAIL_TASK, SEND_WELCOME_EMAIL_TASK, create_celery_app

configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
logger = structlog.get_logger(__name__)

celery_app = create_celery_app(settings, name="inkwell_worker")
mailer = Mailer(settings)

RETRY_OPTIONS = {
    "autoretry_for": (ConnectionErrors, aiosmtplib.SMTPException, OSError),
    "retry_backoff": settings.EMAIL_RETRY_BACKOFF_SECONDS,
    "retry_jitter": False,
    "max_retries": settings.EMAIL_MAX_RETRIES,
}


def welcome_message(name: str) -> tuple[str, str, str]:
    """Subject, plain-text body and HTML body of the sign-up greeting."""
    subject = f"Welcome to {settings.PROJECT_NAME.capitalize()}!"
    text = (
        f"Hi {name},\n\n"
        "Thanks for signing up. You can start writing your first post right away.\n"
    )
    body = (
        f"<p>Hi {html.escape(name)},</p>"
        "<p>Thanks for signing up. You can start writing your first post right away.</p>"
    )
    return subject, text, body


@celery_app.task(name=SEND_EMAIL_TASK, **RETRY_OPTIONS)
def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> None:
    asyncio.run(mailer.send(to, subject, text, html))


@celery_app.task(name=SEND_WELCOME_EMAIL_TASK, **RETRY_OPTIONS)
def send_welcome_email(to: str, name: str) -> None:
    subject, text, body = welcome_message(name)
    asyncio.run(mailer.send(to, subject, text, body))
    logger.info("welcome_email_processed", to=to)
