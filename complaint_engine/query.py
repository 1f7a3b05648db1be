"""
Filtering and pagination over the complaint list.

Filters are combined with AND; an unset filter (``None``, empty or the
``"ALL"`` sentinel) matches everything. Results keep store order (newest
first), which is the only ordering the listing relies on.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from pydantic import BaseModel

from .errors import InvalidInput
from .models import Complaint, User, UserRole

ALL = "ALL"

DEFAULT_PAGE_SIZE = 10


class ComplaintFilter(BaseModel):
    status: Optional[str] = None
    sentiment: Optional[str] = None
    assignee: Optional[str] = None
    search_term: Optional[str] = None


class Page(BaseModel):
    items: List[Complaint]
    total: int
    page: int
    page_size: int
    total_pages: int


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def _value(enum_or_str) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


def matches(complaint: Complaint, flt: Optional[ComplaintFilter]) -> bool:
    if flt is None:
        return True
    if _is_set(flt.status) and complaint.status.value != _value(flt.status):
        return False
    if _is_set(flt.sentiment) and complaint.sentiment.value != _value(flt.sentiment):
        return False
    if _is_set(flt.assignee) and complaint.assigned_to != flt.assignee:
        return False
    if flt.search_term:
        term = flt.search_term.lower()
        if term not in complaint.id.lower() and term not in complaint.title.lower():
            return False
    return True


def filter_complaints(complaints: Iterable[Complaint], flt: Optional[ComplaintFilter]) -> List[Complaint]:
    return [c for c in complaints if matches(c, flt)]


def paginate(items: List[Complaint], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    if page < 1:
        raise InvalidInput("page must be >= 1")
    if page_size < 1:
        raise InvalidInput("page_size must be >= 1")

    total = len(items)
    start = (page - 1) * page_size
    return Page(
        items=items[start:start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=(total + page_size - 1) // page_size,
    )


def list_complaints(
    complaints: Iterable[Complaint],
    flt: Optional[ComplaintFilter] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page:
    return paginate(filter_complaints(complaints, flt), page=page, page_size=page_size)


def visible_to(complaints: Iterable[Complaint], user: User) -> List[Complaint]:
    """Students only see complaints they filed."""
    if user.role == UserRole.STUDENT:
        return [c for c in complaints if c.customer_id == user.id]
    return list(complaints)


class ComplaintListing:
    """Filter + page state behind the complaint list view.

    Changing any filter goes back to page 1.
    """

    def __init__(self, source, page_size: int = DEFAULT_PAGE_SIZE):
        # `source` is a zero-argument callable returning complaints in store order
        self._source = source
        self.page_size = page_size
        self.filter = ComplaintFilter()
        self.page = 1

    def set_filter(self, **changes) -> Page:
        updated = self.filter.model_copy(update=changes)
        if updated != self.filter:
            self.filter = updated
            self.page = 1
        return self.current()

    def current(self) -> Page:
        result = list_complaints(self._source(), self.filter, page=self.page, page_size=self.page_size)
        if result.total_pages and self.page > result.total_pages:
            self.page = result.total_pages
            result = list_complaints(self._source(), self.filter, page=self.page, page_size=self.page_size)
        return result

    def go_to(self, page: int) -> Page:
        self.page = max(1, page)
        return self.current()

    def next_page(self) -> Page:
        return self.go_to(self.page + 1)

    def previous_page(self) -> Page:
        return self.go_to(self.page - 1)


__all__ = [
    "ALL",
    "DEFAULT_PAGE_SIZE",
    "ComplaintFilter",
    "Page",
    "matches",
    "filter_complaints",
    "paginate",
    "list_complaints",
    "visible_to",
    "ComplaintListing",
]
