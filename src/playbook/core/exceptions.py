"""
Custom exceptions for playbook.

This module defines the error taxonomy shared by the GitHub client, the
commit synchronizer and the change-request lifecycle.

Exception Hierarchy:
    PlaybookError (base)
    ├── NotFoundError (ref, file or pull request absent)
    ├── ConflictError (single-file write raced with another writer)
    ├── RemoteFaultError (any other non-2xx or transport failure)
    └── InvalidChangeSetError (rejected before any remote write)

A moved branch during a tree sync is not an exception: it is reported as
``RefUpdateStatus.CONFLICT`` / ``SyncStatus.CONFLICT`` so the caller can
decide whether to retry from a fresh head.

Example:
    >>> from playbook.core.exceptions import RemoteFaultError
    >>> try:
    ...     raise RemoteFaultError("create blob failed", status_code=403, body="rate limited")
    ... except RemoteFaultError as e:
    ...     print(e.status_code, e.context)
"""


class PlaybookError(Exception):
    """
    Base exception for all playbook errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize a playbook error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class NotFoundError(PlaybookError):
    """
    Raised when a branch, ref, file or pull request does not exist.

    Existence checks (``get_file``) translate this into an
    ``exists=False`` result instead of raising; every other caller
    decides for itself whether absence is expected.
    """


class ConflictError(PlaybookError):
    """
    Raised when the single-file content API rejects a write because the
    file changed since its blob id was read.
    """


class RemoteFaultError(PlaybookError):
    """
    Exception for non-2xx responses other than not-found.

    Covers authentication failures, rate limiting, validation failures on
    the remote side and transport errors. The status code and raw body are
    kept verbatim for diagnosis.

    Attributes:
        status_code: HTTP status code, or None for transport failures
        body: Raw response body (may be empty)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        **context: object,
    ) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        detail = f": {self.body}" if self.body else ""
        return f"{self.message} (HTTP {self.status_code}){detail}"


class InvalidChangeSetError(PlaybookError):
    """
    Raised when a change set is rejected before anything is written.

    Example:
        >>> raise InvalidChangeSetError("Path escapes scope prefix", path="notes/a.md")
    """


__all__ = [
    "PlaybookError",
    "NotFoundError",
    "ConflictError",
    "RemoteFaultError",
    "InvalidChangeSetError",
]
