"""
Background job queue settings.
"""
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class QueueSettings(BaseSettings):
    """
    Celery broker and worker settings for outbound email.

    CELERY_BROKER_URL and CELERY_RESULT_BACKEND fall back to REDIS_URL.
    """
    CELERY_BROKER_URL: str = ""
    CELERY_RESULT_BACKEND: str = ""
    EMAIL_QUEUE_NAME: str = "email"
    EMAIL_MAX_RETRIES: int = Field(ge=0, default=3)
    EMAIL_RETRY_BACKOFF_SECONDS: int = Field(ge=1, default=2)
    QUEUE_HEALTH_TIMEOUT_SECONDS: float = Field(gt=0, default=2.0)

    @model_validator(mode="after")
    def default_to_redis(self) -> "QueueSettings":
        redis_url = getattr(self, "REDIS_URL", "")
        if not self.CELERY_BROKER_URL:
            self.CELERY_BROKER_URL = redis_url
        if not self.CELERY_RESULT_BACKEND:
            self.CELERY_RESULT_BACKEND = redis_url
        return self
