from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .validators import validation_error


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PageRequest":
        try:
            page = int(args.get("page") or 1)
            limit = int(args.get("limit") or DEFAULT_PAGE_SIZE)
        except (TypeError, ValueError):
            raise validation_error("page and limit must be integers")
        if page < 1 or limit < 1:
            raise validation_error("page and limit must be positive")
        return cls(page=page, limit=min(limit, MAX_PAGE_SIZE))

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0
