"""Centralized, structured exception hierarchy for Inkwell.

Every application error carries a human-readable ``message`` and a
machine-readable ``code``. Services raise these; the API layer maps each
family onto an HTTP status and the error envelope (see ``core.handlers``).
An optional ``details`` payload is forwarded verbatim to the client.
"""

from __future__ import annotations

from typing import Any, Final, Optional

__all__: Final = [
    "InkwellError",
    "ValidationError",
    "AvatarValidationError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "AuthorizationError",
    "NotFoundError",
    "UserNotFoundError",
    "BlogNotFoundError",
    "ConflictError",
    "DuplicateUserError",
    "DuplicateSlugError",
    "RateLimitExceededError",
    "UpstreamUnavailableError",
    "StoreUnavailableError",
    "StorageError",
    "EmailQueueError",
    "InternalError",
]


class InkwellError(Exception):
    """Base exception class for all custom errors in the Inkwell application.

    Attributes:
        message (str): A human-readable error message.
        code (str): A unique, machine-readable error code.
        details (Any): Optional structured context exposed to the client.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error", details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.details = details
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Validation errors (400)
# ---------------------------------------------------------------------------


class ValidationError(InkwellError):
    """Raised for malformed or missing input that passed schema validation."""

    def __init__(self, message: str, code: str = "validation_error", details: Optional[Any] = None):
        super().__init__(message, code, details)


class AvatarValidationError(ValidationError):
    """Raised when an uploaded avatar has an unsupported type or is too large."""

    def __init__(self, message: str, code: str = "invalid_avatar", details: Optional[Any] = None):
        super().__init__(message, code, details)


# ---------------------------------------------------------------------------
# Auth errors (401 / 403)
# ---------------------------------------------------------------------------


class AuthenticationError(InkwellError):
    """Raised when a credential is missing, invalid or expired (401)."""

    def __init__(self, message: str, code: str = "authentication_error", details: Optional[Any] = None):
        super().__init__(message, code, details)


class InvalidCredentialsError(AuthenticationError):
    """Raised on a failed sign-in. The message stays generic to avoid user enumeration."""

    def __init__(self, message: str = "Invalid email or password", code: str = "invalid_credentials"):
        super().__init__(message, code)


class AuthorizationError(InkwellError):
    """Raised when an authenticated user lacks the role or ownership required (403)."""

    def __init__(self, message: str, code: str = "permission_denied", details: Optional[Any] = None):
        super().__init__(message, code, details)


# ---------------------------------------------------------------------------
# Resource errors (404 / 409)
# ---------------------------------------------------------------------------


class NotFoundError(InkwellError):
    def __init__(self, message: str, code: str = "not_found", details: Optional[Any] = None):
        super().__init__(message, code, details)


class UserNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found", code: str = "user_not_found"):
        super().__init__(message, code)


class BlogNotFoundError(NotFoundError):
    def __init__(self, message: str = "Blog not found", code: str = "blog_not_found"):
        super().__init__(message, code)


class ConflictError(InkwellError):
    def __init__(self, message: str, code: str = "conflict", details: Optional[Any] = None):
        super().__init__(message, code, details)


class DuplicateUserError(ConflictError):
    def __init__(self, message: str = "Email already registered", code: str = "duplicate_user"):
        super().__init__(message, code)


class DuplicateSlugError(ConflictError):
    def __init__(self, slug: str, code: str = "duplicate_slug"):
        super().__init__("A blog with this slug already exists", code, {"slug": slug})


# ---------------------------------------------------------------------------
# Throttling (429)
# ---------------------------------------------------------------------------


class RateLimitExceededError(InkwellError):
    """Completes the 429 branch of the error taxonomy.

    Nothing in the request path raises it: the global and per-route limiters
    return their 429 envelope directly. The registered handler gives code that
    throttles outside the pipeline the same response shape.
    """

    def __init__(self, message: str = "Too many requests, please try again later.", code: str = "rate_limit_exceeded"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Upstream / infrastructure errors (500 on request paths, 503 in health checks)
# ---------------------------------------------------------------------------


class UpstreamUnavailableError(InkwellError):
    """Raised when a backing service (database, store, storage, mail) cannot be reached."""

    def __init__(self, message: str, code: str = "upstream_unavailable", details: Optional[Any] = None):
        super().__init__(message, code, details)


class StoreUnavailableError(UpstreamUnavailableError):
    def __init__(self, message: str = "Key-value store unavailable", code: str = "store_unavailable"):
        super().__init__(message, code)


class StorageError(UpstreamUnavailableError):
    def __init__(self, message: str = "Object storage request failed", code: str = "storage_error"):
        super().__init__(message, code)


class EmailQueueError(UpstreamUnavailableError):
    def __init__(self, message: str = "Email queue unavailable", code: str = "email_queue_error"):
        super().__init__(message, code)


class InternalError(InkwellError):
    def __init__(self, message: str = "Internal Server Error", code: str = "internal_error"):
        super().__init__(message, code)
