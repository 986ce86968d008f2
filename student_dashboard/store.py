"""
Record store: reconciles the remote collection with the local cache.

RecordStore owns the canonical in-memory list of students for one app
session. Every mutation talks to the server first and then brings the
local cache and the in-memory list in line with whatever happened:

    add      -> create remotely; on any failure keep the record locally
    update   -> update remotely; a 404 means the record is gone, drop it
    delete   -> delete remotely; always drop it locally afterwards
    refresh  -> list remotely and merge with the cache (cache has priority);
                fall back to the cache alone when the server is unreachable

Failure Policy:
    No mutation raises for remote or storage trouble. Each returns a
    MutationResult whose outcome says what happened and whose message is
    the one-line summary a host shows to the user. The single exception
    is InvalidStateError from update(), which is a caller error.

Usage:
    store = RecordStore(StudentsApi(base_url), LocalCache(KeyValueStore(path)))
    store.refresh()
    result = store.add(Student(firstname="Jane", mail="jane@example.com"))
    if result.degraded:
        print(result.message)   # "Could not reach server, saved locally"
"""

import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum

from student_dashboard.core.cache import LocalCache
from student_dashboard.core.exceptions import (
    DashboardError,
    InvalidStateError,
    NotFoundError,
    RemoteError,
    RemoteTimeoutError,
)
from student_dashboard.core.logger import get_logger, log_offline_write
from student_dashboard.records.identity import identity_of, key_of
from student_dashboard.records.merge import merge
from student_dashboard.records.models import Student
from student_dashboard.remote.client import StudentsApi

logger = get_logger(__name__)


SAVED_LOCALLY_MESSAGE = "Could not reach server, saved locally"
DELETE_FAILED_MESSAGE = "Delete failed"


class Outcome(Enum):
    """What a store operation ended up doing."""

    SAVED = "saved"
    SAVED_LOCALLY = "saved_locally"
    REMOVED = "removed"
    RECONCILED = "reconciled"
    LOADED = "loaded"
    LOADED_FROM_CACHE = "loaded_from_cache"
    FAILED = "failed"


@dataclass(frozen=True)
class MutationResult:
    """
    Result of one RecordStore operation.

    Attributes:
        outcome: What happened.
        record: The record as it now stands locally (None for delete,
                refresh and reconciled updates).
        message: One-line summary for the user; empty on plain success.
        error: The underlying error when the server was not happy.
    """
    outcome: Outcome
    record: Student | None = None
    message: str = ""
    error: DashboardError | None = None

    @property
    def ok(self) -> bool:
        """True unless the operation failed outright."""
        return self.outcome is not Outcome.FAILED

    @property
    def degraded(self) -> bool:
        """True when the result stands only locally."""
        return self.outcome in (Outcome.SAVED_LOCALLY, Outcome.LOADED_FROM_CACHE)


def _placeholder_id() -> str:
    """Epoch milliseconds, used as the id of a record the server has not seen."""
    return str(int(time.time() * 1000))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore:
    """
    Mutation coordinator for student records.

    Holds the canonical list of records for one session. The list is only
    changed by this class; read it through the `records` property.
    """

    def __init__(self, api: StudentsApi, cache: LocalCache) -> None:
        self._api = api
        self._cache = cache
        self._records: list[Student] = []

    @property
    def records(self) -> list[Student]:
        """Copy of the current canonical list."""
        return list(self._records)

    def get(self, record_id: str) -> Student | None:
        """Return the first record whose id is record_id, or None."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, record: Student) -> MutationResult:
        """
        Create a record, keeping it locally even if the server is unreachable.

        The record gets a creation date and a placeholder id when it has
        none. The server's id replaces the placeholder when the create
        succeeds. Either way the record is prepended to the local cache and
        merged to the front of the in-memory list.
        """
        final = record
        if not final.date:
            final = replace(final, date=_now_iso())
        if not final.id:
            final = replace(final, id=_placeholder_id())

        error: RemoteError | None = None
        try:
            created = self._api.create(final)
        except RemoteError as e:
            error = e
            saved = final
        else:
            saved = created if created.id else replace(created, id=final.id)

        self._cache.prepend(saved)
        self._records = merge([saved], self._records)

        if error is not None:
            logger.debug(f"Create failed: {error.message}")
            log_offline_write(logger, key_of(saved), saved.display_name, error.message)
            return MutationResult(
                Outcome.SAVED_LOCALLY,
                record=saved,
                message=SAVED_LOCALLY_MESSAGE,
                error=error
            )

        logger.info(f"Added student: {saved.display_name}")
        return MutationResult(Outcome.SAVED, record=saved)

    def update(self, record: Student) -> MutationResult:
        """
        Push an edited record to the server.

        The remote id is the record's id, or its mail when it has no id. A
        record without a date is sent with the current time.

        Returns:
            SAVED with the confirmed record; RECONCILED when the server no
            longer has it (it is then dropped locally too); FAILED on any
            other remote error, leaving local state untouched.

        Raises:
            InvalidStateError: If the record has neither id nor mail.
        """
        identity = identity_of(record)
        if not identity:
            raise InvalidStateError(
                "Cannot update a record with no identity",
                details={"record": record.to_dict()}
            )
        if not record.date:
            record = replace(record, date=_now_iso())

        try:
            confirmed = self._api.update(identity, record)
        except NotFoundError as e:
            self._drop(identity)
            logger.info(f"Student {identity} no longer exists on the server, removed locally")
            return MutationResult(Outcome.RECONCILED, error=e)
        except RemoteError as e:
            logger.error(f"Update of student {identity} failed: {e.message}")
            return MutationResult(
                Outcome.FAILED,
                record=record,
                message=f"Update failed: {e.message}",
                error=e
            )

        if not confirmed.id:
            confirmed = replace(confirmed, id=record.id)

        self._records = merge(
            [confirmed if identity_of(r) == identity else r for r in self._records]
        )
        self._cache.replace(confirmed)

        logger.info(f"Updated student: {confirmed.display_name}")
        return MutationResult(Outcome.SAVED, record=confirmed)

    def delete(self, record_id: str) -> MutationResult:
        """
        Delete a record remotely and locally.

        The record is removed from the cache and the in-memory list even
        when the server call fails; the next refresh reconciles any
        difference. A 404 from the server counts as success.

        Returns:
            REMOVED, including when the server answered with an error
            status (logged, reconciled on refresh); FAILED only when the
            server could not be reached.
        """
        error: RemoteError | None = None
        try:
            self._api.delete(record_id)
        except RemoteTimeoutError as e:
            self._drop(record_id)
            logger.error(f"Delete of student {record_id} failed: {e.message}")
            return MutationResult(Outcome.FAILED, message=DELETE_FAILED_MESSAGE, error=e)
        except RemoteError as e:
            logger.warning(f"Server rejected delete of student {record_id}: {e.message}")
            error = e

        self._drop(record_id)

        if error is None:
            logger.info(f"Deleted student {record_id}")
        return MutationResult(Outcome.REMOVED, error=error)

    def refresh(self) -> MutationResult:
        """
        Reload the list from the server and the local cache.

        Cached records take priority: a remote record whose id (or mail)
        matches a cached one is left out in favour of the cached copy.
        When the server cannot be reached the cache alone is used.
        """
        local = self._cache.load()

        try:
            remote = self._api.list()
        except RemoteError as e:
            logger.warning(f"Could not load students from server: {e.message}")
            self._records = merge(local)
            if self._records:
                return MutationResult(
                    Outcome.LOADED_FROM_CACHE,
                    message="Could not reach server, showing saved students",
                    error=e
                )
            return MutationResult(
                Outcome.FAILED,
                message="Could not load students",
                error=e
            )

        shadowed = {identity_of(r) for r in local} - {""}
        fresh = [r for r in remote if identity_of(r) not in shadowed]
        self._records = merge(local, fresh)

        logger.debug(
            f"Loaded {len(self._records)} students "
            f"({len(local)} cached, {len(remote)} remote)"
        )
        return MutationResult(Outcome.LOADED)

    def _drop(self, identity: str) -> None:
        """Remove records matching identity from memory and the cache."""
        self._records = [r for r in self._records if identity_of(r) != identity]
        self._cache.remove_by_identity(identity)
