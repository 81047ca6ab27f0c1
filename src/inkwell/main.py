"""ASGI entry point: ``uvicorn inkwell.main:app``."""

from inkwell.core.application import create_application
from inkwell.core.initialization import initialize_application

initialize_application()

app = create_application()
