"""
Merge and deduplication of record sequences.

The collapse rule is "last value wins, first position wins": a later
record with the same composite key replaces the earlier one's content but
takes over the earlier one's slot in the output. dict preserves insertion
order and keeps the original slot on reassignment, which is exactly this
rule.
"""

from typing import Iterable

from student_dashboard.core.logger import get_logger
from student_dashboard.records.identity import key_of
from student_dashboard.records.models import Student

logger = get_logger(__name__)


def merge(*sequences: Iterable[Student]) -> list[Student]:
    """
    Concatenate sequences in the given order and collapse duplicates.

    Args:
        *sequences: Record sequences, concatenated left to right.

    Returns:
        One record per distinct composite key, in order of each key's first
        occurrence, each holding the last record seen for that key.

    Example:
        a1 = Student(id="1", mail="a@x.com", firstname="old")
        a2 = Student(id="1", mail="a@x.com", firstname="new")
        b = Student(id="2", mail="b@x.com")
        merge([a1, b], [a2])  # [a2, b]
    """
    collapsed: dict[str, Student] = {}
    for sequence in sequences:
        for record in sequence:
            key = key_of(record)
            if key in collapsed:
                logger.debug(f"Duplicate student collapsed: {key!r}")
            collapsed[key] = record
    return list(collapsed.values())
