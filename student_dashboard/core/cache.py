"""
Local record cache for student-dashboard.

The cache is the durable mirror of records created or edited on this
machine. It lives as one JSON array under a single key of the
KeyValueStore, newest first.

Failure Policy:
    The cache never raises. Unreadable content is treated as an empty
    cache; a failed write is logged and the caller carries on with its
    in-memory view only. When the slot cannot be read, mutations leave it
    untouched rather than overwrite records they could not see.

Usage:
    cache = LocalCache(KeyValueStore(path))
    cache.prepend(student)
    cache.load()          # [student, ...older]
    cache.remove_by_id(student.id)
"""

import json

from student_dashboard.core.config import DEFAULT_CACHE_KEY
from student_dashboard.core.exceptions import InvalidStateError, PersistError
from student_dashboard.core.logger import get_logger
from student_dashboard.core.storage import KeyValueStore
from student_dashboard.records.identity import identity_of
from student_dashboard.records.models import Student

logger = get_logger(__name__)


class LocalCache:
    """
    JSON-array record cache stored under one key.

    Attributes:
        key: Slot name in the key-value store (default "localStudents").
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_CACHE_KEY) -> None:
        self._store = store
        self.key = key

    def load(self) -> list[Student]:
        """
        Read the cached records, newest first.

        Returns:
            The cached records; [] when the slot is absent, unreadable,
            or not a JSON array. Entries that are not valid records are
            skipped.
        """
        try:
            return self._read()
        except PersistError as e:
            logger.error(f"Could not read local cache: {e.message}")
            return []

    def _read(self) -> list[Student]:
        # Raises PersistError when the store cannot be read; absent or
        # corrupt content reads as [].
        raw = self._store.get(self.key)
        if raw is None:
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Local cache is corrupted, ignoring it: {e}")
            return []

        if not isinstance(data, list):
            logger.error("Local cache does not hold a list, ignoring it")
            return []

        records: list[Student] = []
        for item in data:
            try:
                records.append(Student.from_dict(item))
            except InvalidStateError as e:
                logger.warning(f"Skipping invalid cached record: {e.message}")
        return records

    def _read_for_write(self) -> list[Student] | None:
        # None means the current content is unknown and must not be overwritten
        try:
            return self._read()
        except PersistError as e:
            logger.error(f"Could not read local cache, leaving it unchanged: {e.message}")
            return None

    def _save(self, records: list[Student]) -> bool:
        try:
            self._store.set(self.key, json.dumps([r.to_dict() for r in records]))
        except PersistError as e:
            logger.error(f"Could not write local cache, continuing in memory only: {e.message}")
            return False
        return True

    def prepend(self, record: Student) -> bool:
        """
        Insert a record at the front and persist.

        Returns:
            False if the slot could not be read or written (already logged).
        """
        records = self._read_for_write()
        if records is None:
            return False
        records.insert(0, record)
        return self._save(records)

    def remove_by_id(self, record_id: str) -> bool:
        """
        Drop every cached record whose id equals record_id and persist.

        Returns:
            False if the slot could not be read or written (already logged).
        """
        records = self._read_for_write()
        if records is None:
            return False
        return self._save([r for r in records if r.id != record_id])

    def remove_by_identity(self, identity: str) -> bool:
        """
        Drop every cached record whose id, or mail when it has no id,
        equals identity.

        Covers records cached before the server assigned them an id.
        """
        records = self._read_for_write()
        if records is None:
            return False
        return self._save([r for r in records if identity_of(r) != identity])

    def replace(self, record: Student) -> bool:
        """
        Swap in a newer version of cached records sharing record.id.

        Records that are not cached are not added.

        Returns:
            True if at least one cached record was replaced and persisted.
        """
        if not record.id:
            return False

        records = self._read_for_write()
        if records is None:
            return False

        replaced = False
        for index, cached in enumerate(records):
            if cached.id == record.id:
                records[index] = record
                replaced = True

        if not replaced:
            return False
        return self._save(records)

    def clear(self) -> None:
        """Remove the slot entirely."""
        try:
            self._store.delete(self.key)
        except PersistError as e:
            logger.error(f"Could not clear local cache: {e.message}")
