import pytest
from pydantic import ValidationError

from inkwell.core.config.settings import Settings, create_settings


def test_defaults(test_settings):
    assert test_settings.APP_ENV == "test"
    assert test_settings.EMAIL_TEST_MODE is True
    assert test_settings.POSTGRES_POOL_SIZE == 2
    assert test_settings.POSTGRES_POOL_SIZE + test_settings.POSTGRES_MAX_OVERFLOW == 10
    assert test_settings.REDIS_MAX_RETRIES == 3
    assert (test_settings.REDIS_RETRY_DELAY_MS, test_settings.REDIS_MAX_RETRY_DELAY_MS) == (1000, 5000)
    assert test_settings.REDIS_ENABLE_OFFLINE_QUEUE is True
    assert test_settings.SMTP_PORT == 587
    assert test_settings.FROM_EMAIL == "noreply@example.com"
    assert test_settings.AWS_REGION == "us-east-1"
    assert test_settings.AVATAR_MAX_BYTES == 5 * 1024 * 1024


def test_assembled_urls(test_settings):
    assert test_settings.REDIS_URL == "redis://localhost:6379/0"
    assert test_settings.DATABASE_URL.startswith("postgresql+asyncpg://")
    assert test_settings.CELERY_BROKER_URL == test_settings.REDIS_URL
    assert test_settings.CELERY_RESULT_BACKEND == test_settings.REDIS_URL


def test_redis_url_carries_credentials():
    settings = Settings(REDIS_URL="", REDIS_USERNAME="app", REDIS_PASSWORD="pw", REDIS_SSL=True, REDIS_HOST="cache")
    assert settings.REDIS_URL == "rediss://app:pw@cache:6379/0"


def test_allowed_origins_are_split():
    settings = Settings(ALLOWED_ORIGINS="https://a.example, https://b.example,")
    assert settings.ALLOWED_ORIGINS == ["https://a.example", "https://b.example"]


def test_default_allowed_origins_is_a_list(test_settings):
    assert test_settings.ALLOWED_ORIGINS == ["http://localhost:3000"]


def test_short_secret_key_is_rejected():
    with pytest.raises(ValidationError):
        Settings(SECRET_KEY="short")


def test_production_requires_redis_password():
    with pytest.raises(ValidationError):
        Settings(APP_ENV="production", REDIS_PASSWORD="")
    assert Settings(APP_ENV="production", REDIS_PASSWORD="pw").REDIS_URL.startswith("redis://:pw@")


def test_production_requires_smtp_credentials():
    settings = Settings(APP_ENV="production", REDIS_PASSWORD="pw")
    with pytest.raises(ValueError):
        settings.validate_required_fields()


def test_create_settings_applies_overrides():
    assert create_settings(LOG_LEVEL="DEBUG").LOG_LEVEL == "DEBUG"
