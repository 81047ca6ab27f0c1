"""Page/limit pagination helpers shared by list endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class Pagination:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "total_pages": math.ceil(total / self.limit) if total else 0,
        }


def parse_pagination(
    page: Optional[int | str] = None,
    limit: Optional[int | str] = None,
    max_limit: int = MAX_LIMIT,
) -> Pagination:
    """Coerce raw query values; anything unusable falls back to the defaults.

    ``limit`` is clamped to ``max_limit``.
    """
    return Pagination(
        page=_positive_int(page, DEFAULT_PAGE),
        limit=min(_positive_int(limit, DEFAULT_LIMIT), max_limit),
    )


def _positive_int(value: Optional[int | str], default: int) -> int:
    try:
        number = int(value) if value is not None else default
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default
