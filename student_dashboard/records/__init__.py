"""
Student record types and the pure logic that operates on them.

This module contains no I/O:
    - models: The Student dataclass and the field alias table
    - identity: Composite keys used for deduplication
    - merge: "Last value wins, first position wins" collapse
    - view: Search, sort and pagination for list screens

Usage:
    from student_dashboard.records import Student, key_of, merge, query
"""

from student_dashboard.records.identity import identity_of, key_of
from student_dashboard.records.merge import merge
from student_dashboard.records.models import (
    EDITABLE_FIELDS,
    FIELD_ALIASES,
    Student,
    normalize_fields,
)
from student_dashboard.records.view import (
    FILTER_FIELDS,
    Page,
    filter_records,
    paginate,
    query,
    sort_records,
)

__all__ = [
    # Models
    "Student",
    "FIELD_ALIASES",
    "EDITABLE_FIELDS",
    "normalize_fields",
    # Identity
    "key_of",
    "identity_of",
    # Merge
    "merge",
    # View
    "FILTER_FIELDS",
    "Page",
    "filter_records",
    "sort_records",
    "paginate",
    "query",
]
