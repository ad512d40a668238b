"""
Custom exceptions for the NanoMon monitoring core.

This module defines the exception hierarchy for collection errors:
- Counter files that are missing or unreadable
- Counter content that is present but malformed
- Structured fields that are expected but absent
- Whole-snapshot collection failures

All exceptions follow the pattern from docker_handler.exceptions with
message and optional details dict for structured error information.
"""

from typing import Any


class NanomonError(Exception):
    """
    Base exception for all NanoMon errors.

    Parameters
    ----------
    message : str
        Human-readable error message
    details : dict[str, Any], optional
        Structured error details for logging/debugging

    Examples
    --------
    >>> error = NanomonError("Collector error", details={"path": "/proc/stat"})
    >>> error.message
    'Collector error'
    >>> error.details["path"]
    '/proc/stat'
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize NanoMon error.

        Parameters
        ----------
        message : str
            Error message
        details : dict[str, Any], optional
            Additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class CollectorError(NanomonError):
    """
    Base exception for metric collection errors.

    Raised by the kernel counter parsers and the collectors built on them.
    """

    pass


class CounterIOError(CollectorError):
    """
    Raised when a counter file or socket is unavailable or unreadable.

    Examples include:
    - /proc/<pid>/stat vanished because the process exited
    - Permission denied on /proc/<pid>/status
    - Interface statistics directory removed mid-read
    """

    pass


class ParseError(CollectorError):
    """
    Raised when counter content is present but malformed or short.

    Examples include:
    - Non-numeric uptime token
    - Aggregate cpu line with fewer than 8 fields
    - Process stat record with fewer than 22 fields after the command name
    """

    pass


class MissingFieldError(ParseError):
    """
    Raised when an expected structured field is absent.

    Example: a process status record without a ``Uid:`` line.
    """

    pass


class CollectionError(NanomonError):
    """
    Raised when a full snapshot collection fails.

    Snapshot collection is all-or-nothing: the failing operation name is
    recorded in ``details["operation"]`` and the original exception is
    chained as ``__cause__``.
    """

    pass
