"""
Listing parameters shared by the owner and admin index pages.
"""

import math
from dataclasses import dataclass
from typing import Mapping, Sequence
from urllib.parse import urlencode

from constants import DEFAULT_PER_PAGE, DEFAULT_SORT_BY, DEFAULT_SORT_ORDER, MAX_PER_PAGE


def _to_int(raw, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


@dataclass
class ListParams:
    """Normalized page/sort/search parameters from a query string."""

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER
    search: str = ""

    @classmethod
    def from_query(
        cls,
        query: Mapping[str, str],
        allowed_sorts: Sequence[str],
        default_sort: str = DEFAULT_SORT_BY,
    ) -> "ListParams":
        page = _to_int(query.get("page"), 1)
        if page < 1:
            page = 1
        per_page = _to_int(query.get("perPage"), DEFAULT_PER_PAGE)
        if per_page < 1 or per_page > MAX_PER_PAGE:
            per_page = DEFAULT_PER_PAGE
        sort_by = query.get("sortBy") or default_sort
        if sort_by not in allowed_sorts:
            sort_by = default_sort
        sort_order = (query.get("sortOrder") or DEFAULT_SORT_ORDER).lower()
        if sort_order not in ("asc", "desc"):
            sort_order = DEFAULT_SORT_ORDER
        search = (query.get("search") or "").strip()
        return cls(page, per_page, sort_by, sort_order, search)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"

    def total_pages(self, total: int) -> int:
        return max(1, math.ceil(total / self.per_page))

    def query_string(self, **overrides) -> str:
        """Rebuild the query string, e.g. for pagination and sort links."""
        values = {
            "page": self.page,
            "perPage": self.per_page,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
            "search": self.search,
        }
        values.update(overrides)
        return urlencode({k: v for k, v in values.items() if v not in ("", None)})


def calculate_growth_rate(current: int, previous: int) -> float:
    """
    Percentage change from previous to current, truncated to one decimal.

    A previous value of zero counts as 100% growth.
    """
    if previous == 0:
        return 100.0
    change = (current - previous) / previous * 100.0
    return math.trunc(change * 10) / 10
