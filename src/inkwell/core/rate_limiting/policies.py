"""Named rate limit presets.

Presets describe *policy*, not mechanism: every one of them is enforced by
the same fixed-window counter, only the window, the limit and the message
returned on rejection differ.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class RateLimitPolicy:
    name: str
    window_ms: int
    limit: int
    message: str

    @property
    def window_seconds(self) -> int:
        return max(1, self.window_ms // 1000)


STRICT: Final = RateLimitPolicy(
    name="strict",
    window_ms=60_000,
    limit=5,
    message="Too many attempts, please try again later.",
)
"""Sensitive mutations: sign-in, sign-up, post creation, avatar changes."""

STANDARD: Final = RateLimitPolicy(
    name="standard",
    window_ms=60_000,
    limit=30,
    message="Too many requests from this user, please try again later.",
)
"""Ordinary authenticated mutations."""

RELAXED: Final = RateLimitPolicy(
    name="relaxed",
    window_ms=60_000,
    limit=60,
    message="Too many requests from this user, please try again later.",
)
"""Read-heavy authenticated endpoints."""

GLOBAL: Final = RateLimitPolicy(
    name="global",
    window_ms=60_000,
    limit=100,
    message="Too many requests, please try again later.",
)
"""Coarse per-IP limit applied ahead of any route-level limiter; health probes are exempt."""

PRESETS: Final = {policy.name: policy for policy in (STRICT, STANDARD, RELAXED, GLOBAL)}
