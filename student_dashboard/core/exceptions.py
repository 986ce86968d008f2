"""
Exception classes for student-dashboard.

Every error the package raises on purpose is defined here.
Each exception carries a human-readable message plus a details dictionary,
so callers can log context without parsing strings.

Exception Hierarchy:
    DashboardError (base)
        ConfigError - Unreadable or invalid config.yaml
        PersistError - Local storage read/write issues (always absorbed by the cache)
        InvalidStateError - Caller error, e.g. updating a record with no identity
        AuthError - Credentials rejected by the session gate
        ValidationError - Sign-up form values rejected
        RemoteError - Anything the remote collection endpoint did wrong
            RemoteTimeoutError - Timeout or network-level failure
            FetchError - Non-2xx (or unreadable body) while listing
            WriteError - Non-2xx while creating/updating/deleting
            NotFoundError - 404 on update (recoverable)
"""


class DashboardError(Exception):
    """
    Base exception for all student-dashboard errors.

    Every error below derives from it, so one except clause is enough
    for a caller that only wants to report and stop; the CLI does exactly
    that.

    Attributes:
        message: Text shown to the user.
        details: Context for logs (record id, URL, status).

    Example:
        try:
            store.update(record)
        except DashboardError as e:
            logger.error(f"Update failed: {e.message}")
            if e.details:
                logger.debug(f"Context: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Store the message and its context.

        Args:
            message: Text shown to the user as-is.
            details: Extra context for logs. Keys used in this package:
                     - 'record_id': the student involved
                     - 'url': the request URL
                     - 'original_error': text of the wrapped exception
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Only the message; details stay out of user-facing output."""
        return self.message


class ConfigError(DashboardError):
    """
    Raised when config.yaml cannot be used.

    Fatal: the CLI exits with code 1 before touching storage or the server.

    Common causes:
        - config.yaml not found (when it was explicitly requested)
        - config.yaml is not valid YAML
        - Invalid field values (e.g., negative timeout)

    Example:
        raise ConfigError(
            "'remote.timeout' must be a positive number",
            details={'field': 'remote.timeout', 'value': -1}
        )
    """
    pass


class PersistError(DashboardError):
    """
    Raised when the local key-value store cannot be read or written.

    This is a NON-CRITICAL error. The local cache catches it, logs it and
    carries on with an in-memory view only; it must never interrupt the
    remote half of a mutation.

    Common causes:
        - storage.db is locked or corrupted
        - Permission denied / disk full
    """
    pass


class InvalidStateError(DashboardError):
    """
    Raised when the caller asks for something that cannot be done.

    Examples:
        - Updating a record that has neither an id nor a mail
        - Filtering on a field the list view does not know
    """
    pass


class AuthError(DashboardError):
    """
    Raised when login credentials do not match.

    The 'fields' entry of details lists which of 'username' and
    'password' were wrong, so a host can flag each input separately.
    """
    pass


class ValidationError(DashboardError):
    """
    Raised when sign-up values are rejected.

    details['errors'] maps each offending field name to its message.
    """
    pass


class RemoteError(DashboardError):
    """
    Raised when the remote collection endpoint cannot satisfy a request.

    Attributes:
        status: HTTP status code, or None when no response was received.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status: int | None = None
    ) -> None:
        """
        Same as DashboardError, plus the response status.

        Args:
            status: HTTP status code of the failed response, if any.
        """
        super().__init__(message, details)
        self.status = status


class RemoteTimeoutError(RemoteError):
    """
    Raised when the server could not be reached in time.

    Covers both the explicit request timeout and network-level failures
    (DNS, refused connection). This is the "hard network failure" a host
    should surface as "could not reach server".
    """
    pass


class FetchError(RemoteError):
    """Raised when listing the collection returns a non-2xx status or an unreadable body."""
    pass


class WriteError(RemoteError):
    """Raised when a create, update or delete returns a non-2xx status."""
    pass


class NotFoundError(RemoteError):
    """
    Raised when the server answers 404 to an update.

    This is a recoverable condition: the record is gone server-side, so
    the store drops it locally instead of reporting a failed update.
    """
    pass
