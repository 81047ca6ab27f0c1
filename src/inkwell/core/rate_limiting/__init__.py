from inkwell.core.rate_limiting.enforcement import STORE_UNAVAILABLE_CODE, enforce_rate_limit
from inkwell.core.rate_limiting.limiter import (
    FixedWindowRateLimiter,
    Identity,
    RateLimitDecision,
    resolve_identity,
)
from inkwell.core.rate_limiting.policies import GLOBAL, PRESETS, RELAXED, STANDARD, STRICT, RateLimitPolicy

__all__ = [
    "STORE_UNAVAILABLE_CODE",
    "enforce_rate_limit",
    "FixedWindowRateLimiter",
    "Identity",
    "RateLimitDecision",
    "resolve_identity",
    "RateLimitPolicy",
    "GLOBAL",
    "PRESETS",
    "RELAXED",
    "STANDARD",
    "STRICT",
]
