"""View state for the opportunity browser: search, filters, sort and paging."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from samarpan.db.enums import Duration, OpportunityStatus, OpportunityType, SortKey

MAX_PAGE_BUTTONS = 5


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 and page_size > 0 else 0


def page_buttons(total: int, page_size: int) -> list[int]:
    """Numbered page buttons shown under the results: at most the first five pages."""
    return list(range(1, min(MAX_PAGE_BUTTONS, total_pages(total, page_size)) + 1))


def _toggled(values: list[Any], value: Any) -> list[Any]:  # noqa: ANN401
    if value in values:
        return [v for v in values if v != value]
    return [*values, value]


@dataclass
class OpportunityBrowser:
    """Browse state. Any change to the search text, a filter or the sort key
    returns the user to page 1.
    """

    page_size: int = 12
    search: str = ""
    types: list[OpportunityType] = field(default_factory=list)
    durations: list[Duration] = field(default_factory=list)
    statuses: list[OpportunityStatus] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    sort: SortKey = SortKey.NEWEST
    page: int = 1

    def set_search(self, text: str) -> None:
        self.search = text
        self.page = 1

    def toggle_type(self, value: OpportunityType | str) -> None:
        self.types = _toggled(self.types, OpportunityType(value))
        self.page = 1

    def toggle_duration(self, value: Duration | str) -> None:
        self.durations = _toggled(self.durations, Duration(value))
        self.page = 1

    def toggle_status(self, value: OpportunityStatus | str) -> None:
        self.statuses = _toggled(self.statuses, OpportunityStatus(value))
        self.page = 1

    def toggle_skill(self, value: str) -> None:
        self.skills = _toggled(self.skills, value)
        self.page = 1

    def set_sort(self, key: SortKey | str) -> None:
        self.sort = SortKey(key)
        self.page = 1

    def clear_filters(self) -> None:
        self.search = ""
        self.types = []
        self.durations = []
        self.statuses = []
        self.skills = []
        self.page = 1

    def go_to_page(self, page: int, total: int | None = None) -> None:
        """Move to ``page``, clamped to ``[1, total_pages]`` when the total is known."""
        last = total_pages(total, self.page_size) if total is not None else None
        if last:
            page = min(page, last)
        self.page = max(1, page)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def to_params(self) -> dict[str, Any]:
        """Query parameters for ``GET /api/opportunities``."""
        params: dict[str, Any] = {
            "sort": self.sort.value,
            "limit": self.page_size,
            "offset": self.offset,
        }
        if self.search.strip():
            params["search"] = self.search.strip()
        if self.types:
            params["type[]"] = [t.value for t in self.types]
        if self.durations:
            params["duration[]"] = [d.value for d in self.durations]
        if self.statuses:
            params["status[]"] = [s.value for s in self.statuses]
        if self.skills:
            params["skills[]"] = list(self.skills)
        return params

    def page_buttons(self, total: int) -> list[int]:
        return page_buttons(total, self.page_size)

    def has_previous(self) -> bool:
        return self.page > 1

    def has_next(self, total: int) -> bool:
        return self.page < total_pages(total, self.page_size)
