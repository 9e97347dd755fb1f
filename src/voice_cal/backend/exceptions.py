"""Exceptions for calls to the extraction/calendar backend.

Every remote failure is one of two kinds: ``"transport"`` (unreachable,
timed out, non-2xx status) or ``"decode"`` (body not JSON, or not the
expected shape).  The kind is kept for logging only; the user sees the
same plain-language message for both.

Exception hierarchy::

    BackendError           (base for all backend failures)
    +-- ExtractionError    (POST /extract)
    +-- ConflictCheckError (POST /check_conflicts)
    +-- CommitError        (POST /add_event)
"""

from __future__ import annotations

from typing import Literal

import httpx

ErrorKind = Literal["transport", "decode"]

TRANSPORT: ErrorKind = "transport"
DECODE: ErrorKind = "decode"


class BackendError(Exception):
    """Base exception for backend call failures.

    Attributes:
        kind: ``"transport"`` or ``"decode"``.
        endpoint: The endpoint path that failed (e.g. ``"/extract"``).
        status_code: HTTP status code, or ``None`` if the failure did not
            come from an HTTP response.
    """

    #: Plain-language text shown to the user; subclasses override it.
    user_message = "Network error. Please try again."
    #: Short utterance spoken to the user.
    spoken_message = "There was a connection error"

    def __init__(
        self,
        message: str,
        kind: ErrorKind = TRANSPORT,
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.endpoint = endpoint
        self.status_code = status_code


class ExtractionError(BackendError):
    """Raised when ``/extract`` fails."""


class ConflictCheckError(BackendError):
    """Raised when ``/check_conflicts`` fails."""

    user_message = "Error checking conflicts. Please try again."
    spoken_message = "There was an error checking conflicts"


class CommitError(BackendError):
    """Raised when ``/add_event`` fails."""

    user_message = "Error adding event. Please try again."
    spoken_message = "Could not add the event."


def classify_http_error(
    error: httpx.HTTPError,
    endpoint: str,
    error_cls: type[BackendError],
) -> BackendError:
    """Map an ``httpx`` error to *error_cls* with the right kind.

    Args:
        error: The error raised by ``httpx``.
        endpoint: Endpoint path, for the message.
        error_cls: The endpoint-specific :class:`BackendError` subclass.

    Returns:
        An instance of *error_cls*; always of kind ``"transport"``.
    """
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return error_cls(
            f"{endpoint} returned HTTP {status}",
            kind=TRANSPORT,
            endpoint=endpoint,
            status_code=status,
        )
    if isinstance(error, httpx.TimeoutException):
        return error_cls(f"{endpoint} timed out: {error}", kind=TRANSPORT, endpoint=endpoint)
    return error_cls(f"{endpoint} request failed: {error}", kind=TRANSPORT, endpoint=endpoint)
