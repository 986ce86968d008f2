"""
List view queries over the in-memory record list.

Search, sort and pagination happen client-side on whatever the store
currently holds:

    - "all" and "firstname" searches match the start of the first name
    - any other field matches a substring of the field's text
    - results are sorted by first name only while a search term is active
    - pages are 1-based, 10 rows by default
"""

import math
from dataclasses import dataclass
from typing import Sequence

from student_dashboard.core.exceptions import InvalidStateError
from student_dashboard.records.models import Student


FILTER_FIELDS = ("all", "firstname", "lastname", "phone", "age", "role")
DEFAULT_ROWS_PER_PAGE = 10


@dataclass(frozen=True)
class Page:
    """
    One page of a list view.

    Attributes:
        rows: Records on this page.
        page: 1-based page number actually shown (after clamping).
        total_pages: Number of pages; 0 when there are no records.
        total: Number of records across all pages.
    """
    rows: tuple[Student, ...]
    page: int
    total_pages: int
    total: int


def _text(value: object) -> str:
    return "" if value is None else str(value).lower()


def filter_records(
    records: Sequence[Student],
    term: str,
    field: str = "all"
) -> list[Student]:
    """
    Keep the records matching a search term.

    Args:
        records: Records to search.
        term: Search text; matched case-insensitively. Empty keeps everything.
        field: One of FILTER_FIELDS.

    Raises:
        InvalidStateError: If field is not one of FILTER_FIELDS.
    """
    if field not in FILTER_FIELDS:
        raise InvalidStateError(
            f"Unknown filter field: {field}",
            details={"field": field, "allowed": list(FILTER_FIELDS)}
        )

    needle = term.lower()
    if not needle:
        return list(records)

    if field in ("all", "firstname"):
        return [r for r in records if _text(r.firstname).startswith(needle)]
    return [r for r in records if needle in _text(getattr(r, field))]


def sort_records(records: Sequence[Student]) -> list[Student]:
    """Stable sort by case-folded first name; missing names sort first."""
    return sorted(records, key=lambda r: (r.firstname or "").casefold())


def paginate(
    records: Sequence[Student],
    page: int = 1,
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE
) -> Page:
    """
    Slice one page out of records.

    Out-of-range page numbers are clamped to the first/last page.

    Raises:
        InvalidStateError: If rows_per_page is not positive.
    """
    if rows_per_page < 1:
        raise InvalidStateError(
            "rows_per_page must be positive",
            details={"rows_per_page": rows_per_page}
        )

    total = len(records)
    total_pages = math.ceil(total / rows_per_page)
    page = max(1, min(page, total_pages or 1))

    start = (page - 1) * rows_per_page
    rows = tuple(records[start:start + rows_per_page])
    return Page(rows=rows, page=page, total_pages=total_pages, total=total)


def query(
    records: Sequence[Student],
    term: str = "",
    field: str = "all",
    page: int = 1,
    rows_per_page: int = DEFAULT_ROWS_PER_PAGE
) -> Page:
    """
    Filter, sort (only while searching) and paginate in one call.

    Example:
        page = query(store.records, term="an", page=1)
        for student in page.rows:
            print(student.display_name)
    """
    matched = filter_records(records, term, field)
    if term:
        matched = sort_records(matched)
    return paginate(matched, page, rows_per_page)
