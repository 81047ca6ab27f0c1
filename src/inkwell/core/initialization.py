"""Application initialization and setup.

This module handles the initialization tasks required before the application starts:
environment variable loading and logging configuration.
"""

from dotenv import load_dotenv

from inkwell.core.config.settings import settings
from inkwell.core.logging import configure_logging


def initialize_application() -> None:
    """Load ``.env`` into the process environment and configure structlog."""
    load_dotenv(override=False)
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
