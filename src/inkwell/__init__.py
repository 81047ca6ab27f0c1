"""Inkwell: a blogging backend built on FastAPI, Redis and PostgreSQL."""

__version__ = "0.1.0"
