"""
HTTP client for the remote students collection.

The collection is a plain REST resource: one URL for the collection and
one per record.

    GET    {base_url}          -> JSON array of records
    POST   {base_url}          -> created record (server assigns id)
    PUT    {base_url}/{id}     -> updated record
    DELETE {base_url}/{id}     -> deleted record

Error Mapping:
    - No response at all (timeout, DNS, refused) -> RemoteTimeoutError
    - list: non-2xx or a body that is not a JSON array -> FetchError
    - create/update/delete: non-2xx -> WriteError
    - update: 404 -> NotFoundError
    - delete: 404 counts as success (the record is already gone)

Every record coming back is normalized through Student.from_dict, so the
rest of the application only ever sees validated Student objects.

Usage:
    api = StudentsApi(config.remote.base_url, timeout=config.remote.timeout)
    students = api.list()
    created = api.create(Student(mail="jane@example.com"))
"""

from typing import Any

import requests

from student_dashboard.core.config import DEFAULT_TIMEOUT
from student_dashboard.core.exceptions import (
    FetchError,
    InvalidStateError,
    NotFoundError,
    RemoteTimeoutError,
    WriteError,
)
from student_dashboard.core.logger import get_logger
from student_dashboard.records.models import Student

logger = get_logger(__name__)


class StudentsApi:
    """
    Client for the students collection endpoint.

    Attributes:
        base_url: Collection URL without trailing slash.
        timeout: Seconds to wait for each request before giving up.

    Thread Safety:
        requests.Session is not guaranteed to be thread-safe. Use one
        StudentsApi per thread if a host ever needs concurrency.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None
    ) -> None:
        """
        Args:
            base_url: Collection URL, e.g. "https://.../users".
            timeout: Per-request timeout in seconds.
            session: Optional pre-configured session (tests inject one).
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })

    def _record_url(self, record_id: str) -> str:
        return f"{self.base_url}/{record_id}"

    def _send(self, method: str, url: str, payload: dict[str, Any] | None = None) -> requests.Response:
        """
        Perform one request, converting network-level failures.

        Raises:
            RemoteTimeoutError: If no response was received.
        """
        logger.debug(f"{method} {url}")
        try:
            return self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise RemoteTimeoutError(
                f"Server did not answer within {self.timeout}s",
                details={"method": method, "url": url, "original_error": str(e)}
            ) from e
        except requests.exceptions.RequestException as e:
            raise RemoteTimeoutError(
                f"Could not reach server: {e}",
                details={"method": method, "url": url, "original_error": str(e)}
            ) from e

    def _parse_record(self, response: requests.Response, error_cls: type[WriteError]) -> Student:
        """Turn a write response body into a Student, or raise error_cls."""
        try:
            return Student.from_dict(response.json())
        except ValueError as e:
            raise error_cls(
                "Server returned an unreadable record",
                details={"url": response.url, "original_error": str(e)},
                status=response.status_code
            ) from e
        except InvalidStateError as e:
            raise error_cls(
                f"Server returned an invalid record: {e.message}",
                details={"url": response.url, **e.details},
                status=response.status_code
            ) from e

    # =========================================================================
    # Collection Operations
    # =========================================================================

    def list(self) -> list[Student]:
        """
        Fetch every record in the collection.

        Returns:
            Records in server order. Entries that are not JSON objects (or
            fail validation) are skipped with a warning.

        Raises:
            RemoteTimeoutError: If the server could not be reached in time.
            FetchError: On a non-2xx status or a body that is not a JSON array.
        """
        response = self._send("GET", self.base_url)

        if not response.ok:
            raise FetchError(
                f"Failed to fetch students: HTTP {response.status_code}",
                details={"url": self.base_url},
                status=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(
                "Server returned a body that is not JSON",
                details={"url": self.base_url, "original_error": str(e)},
                status=response.status_code
            ) from e

        if not isinstance(data, list):
            raise FetchError(
                "Server returned something other than a list of students",
                details={"url": self.base_url, "type": type(data).__name__},
                status=response.status_code
            )

        students: list[Student] = []
        for index, item in enumerate(data):
            try:
                students.append(Student.from_dict(item))
            except InvalidStateError as e:
                logger.warning(f"Skipping remote entry #{index}: {e.message}")

        logger.debug(f"Fetched {len(students)} students")
        return students

    def create(self, record: Student) -> Student:
        """
        Create a record on the server.

        The id is never sent; the server assigns one.

        Returns:
            The record as the server stored it (with its id).

        Raises:
            RemoteTimeoutError: If the server could not be reached in time.
            WriteError: On a non-2xx status.
        """
        response = self._send("POST", self.base_url, record.to_payload())

        if not response.ok:
            raise WriteError(
                f"Failed to create student: HTTP {response.status_code}",
                details={"url": self.base_url, "mail": record.mail},
                status=response.status_code
            )

        return self._parse_record(response, WriteError)

    # =========================================================================
    # Record Operations
    # =========================================================================

    def update(self, record_id: str, record: Student) -> Student:
        """
        Replace the record stored under record_id.

        Returns:
            The record as the server stored it.

        Raises:
            RemoteTimeoutError: If the server could not be reached in time.
            NotFoundError: If the server no longer has record_id (404).
            WriteError: On any other non-2xx status.
        """
        url = self._record_url(record_id)
        response = self._send("PUT", url, record.to_payload())

        if response.status_code == 404:
            raise NotFoundError(
                f"Student not found on server: {record_id}",
                details={"record_id": record_id, "url": url},
                status=404
            )
        if not response.ok:
            raise WriteError(
                f"Failed to update student {record_id}: HTTP {response.status_code}",
                details={"record_id": record_id, "url": url},
                status=response.status_code
            )

        return self._parse_record(response, WriteError)

    def delete(self, record_id: str) -> None:
        """
        Delete the record stored under record_id.

        A 404 is treated as success: deleting twice leaves the same state
        as deleting once.

        Raises:
            RemoteTimeoutError: If the server could not be reached in time.
            WriteError: On a non-2xx status other than 404.
        """
        url = self._record_url(record_id)
        response = self._send("DELETE", url)

        if response.status_code == 404:
            logger.debug(f"Student {record_id} was already gone on the server")
            return
        if not response.ok:
            raise WriteError(
                f"Failed to delete student {record_id}: HTTP {response.status_code}",
                details={"record_id": record_id, "url": url},
                status=response.status_code
            )
