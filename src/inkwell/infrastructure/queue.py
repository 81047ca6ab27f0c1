"""Celery wiring for outbound email.

The API process only publishes tasks by name; the worker process
(``inkwell.jobs.worker``) registers the implementations. Publishing is
blocking kombu I/O, so it runs in the threadpool.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog
from celery import Celery
from kombu.exceptions import KombuError
from starlette.concurrency import run_in_threadpool

from inkwell.core.config.settings import Settings
from inkwell.core.exceptions import EmailQueueError

logger = structlog.get_logger(__name__)

SEND_EMAIL_TASK = "inkwell.email.send"
SEND_WELCOME_EMAIL_TASK = "inkwell.email.send_welcome"


def create_celery_app(settings: Settings, name: str = "inkwell") -> Celery:
    app = Celery(name, broker=settings.CELERY_BROKER_URL, backend=settings.CELERY_RESULT_BACKEND)
    app.conf.update(
        task_default_queue=settings.EMAIL_QUEUE_NAME,
        task_serializer="json",
        accept_content=["json"],
        result_serializer="json",
        task_ignore_result=True,
        task_acks_late=True,
        broker_connection_retry_on_startup=True,
        broker_connection_timeout=settings.QUEUE_HEALTH_TIMEOUT_SECONDS,
    )
    return app


@dataclass
class EmailQueue:
    """Thin wrapper that fires email tasks on the Celery broker."""

    app: Celery
    health_timeout: float = 2.0

    async def enqueue_email(
        self,
        *,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
    ) -> str:
        return await self._send_task(
            SEND_EMAIL_TASK, {"to": to, "subject": subject, "text": text, "html": html}
        )

    async def enqueue_welcome_email(self, *, to: str, name: str) -> str:
        return await self._send_task(SEND_WELCOME_EMAIL_TASK, {"to": to, "name": name})

    async def _send_task(self, name: str, payload: dict[str, Any]) -> str:
        try:
            result = await run_in_threadpool(
                self.app.send_task, name, kwargs=payload, ignore_result=True
            )
        except (KombuError, OSError) as exc:
            logger.error("email_enqueue_failed", task=name, error=str(exc))
            raise EmailQueueError(f"Could not enqueue {name}") from exc
        logger.info("email_enqueued", task=name, task_id=result.id, to=payload.get("to"))
        return result.id

    async def check_connection(self) -> None:
        def _probe() -> None:
            with self.app.connection_for_write() as connection:
                connection.ensure_connection(max_retries=1, timeout=self.health_timeout)

        try:
            await run_in_threadpool(_probe)
        except (KombuError, OSError) as exc:
            raise EmailQueueError(f"Broker unreachable: {exc}") from exc
