"""Search exceptions and error codes.

Strategy-local failures (timeouts, pattern rejections) are recoverable and
absorbed by the resolver. Only invalid input and unexpected failures reach
callers; "not found" is a regular result, not an exception.
"""

import random
import string
import time
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API clients.

    These codes are part of the public API contract. Should not be changed.
    """

    INVALID_INPUT = "INVALID_INPUT"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    PATTERN_REJECTED = "PATTERN_REJECTED"
    NOT_FOUND = "NOT_FOUND"
    UNEXPECTED_FAILURE = "UNEXPECTED_FAILURE"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"


class SearchError(Exception):  # NOQA: N818
    """Base exception for all resolver errors.

    Attributes
    ----------
    message
        Human-readable error message (safe for end users)
    code
        Stable error code for programmatic handling
    details
        Optional additional context (logged but not exposed to users)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNEXPECTED_FAILURE,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code.value!r}, "
            f"details={self.details!r})"
        )


class InvalidInputError(SearchError):
    """Raised when the query is missing or empty."""

    def __init__(
        self,
        message: str = "Please provide a search query",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_INPUT, details)


class RecoverableSearchError(SearchError):
    """A single strategy failed in a way that a simpler strategy may avoid."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        operation: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
        self.operation = operation


class RecoverableTimeoutError(RecoverableSearchError):
    """A datastore call exceeded the guard deadline."""

    def __init__(self, operation: str, timeout_ms: int) -> None:
        super().__init__(
            f"{operation} exceeded {timeout_ms}ms",
            ErrorCode.QUERY_TIMEOUT,
            operation,
            {"timeout_ms": timeout_ms},
        )
        self.timeout_ms = timeout_ms


class PatternRejectedError(RecoverableSearchError):
    """The datastore refused a pattern predicate as too complex."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"{operation} pattern rejected by datastore",
            ErrorCode.PATTERN_REJECTED,
            operation,
            {"reason": reason},
        )


class UnexpectedFailureError(SearchError):
    """Any other datastore or transport failure.

    The message is always generic; the raw error text stays in ``details`` and
    in the recorded error row identified by ``session_id``.
    """

    def __init__(
        self,
        operation: str,
        session_id: str,
        reason: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"{operation} failed: {human_readable_error(reason)}. "
            f"Reference: {session_id}",
            ErrorCode.UNEXPECTED_FAILURE,
            details,
        )
        self.operation = operation
        self.session_id = session_id


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

_PATTERN_COMPLEXITY_MARKERS = (
    "pattern too complex",
    "like or glob pattern too complex",
)

_HUMAN_READABLE_ERRORS: tuple[tuple[tuple[str, ...], str], ...] = (
    (_PATTERN_COMPLEXITY_MARKERS, "the search was too complex for the database"),
    (("timeout", "timed out", "exceeded"), "the search took too long"),
    (
        ("no such table", "no such column", "does not exist"),
        "a data source is unavailable",
    ),
    (("constraint", "unique"), "the data violates a consistency rule"),
    (("database is locked", "busy"), "the database is busy"),
)

_SESSION_ALPHABET = string.digits + string.ascii_lowercase


def is_pattern_complexity_error(exc: BaseException) -> bool:
    """Check whether an exception is the datastore's pattern complexity limit."""
    message = str(exc).lower()
    return any(marker in message for marker in _PATTERN_COMPLEXITY_MARKERS)


def human_readable_error(message: str) -> str:
    """Map raw datastore error text to a sentence safe for end users."""
    lowered = message.lower()
    for markers, text in _HUMAN_READABLE_ERRORS:
        if any(marker in lowered for marker in markers):
            return text
    return "an unexpected database error occurred"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_SESSION_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_session_id() -> str:
    """Correlation id for logs and recorded errors.

    Example: ``session_lq2x9k_a8f3k2m1z``
    """
    stamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_SESSION_ALPHABET, k=9))
    return f"session_{stamp}_{suffix}"
