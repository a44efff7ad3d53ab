"""Exceptions for Google Calendar operations.

Calendar failures are passed through to API callers with the collaborator's
own status code and message, so :class:`CalendarAPIError` keeps both.

Exception hierarchy::

    CalendarAPIError          (any Calendar API failure; status 500 if unknown)
    +-- CalendarAuthError     (no usable OAuth credentials / HTTP 401)
"""

from __future__ import annotations

import json

from googleapiclient.errors import HttpError

_DEFAULT_STATUS = 500


class CalendarAPIError(Exception):
    """Raised when the Calendar API rejects or fails a request.

    Attributes:
        status_code: HTTP status code from the API, ``500`` when the error
            did not carry one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code or _DEFAULT_STATUS


class CalendarAuthError(CalendarAPIError):
    """Raised when no valid OAuth credentials are available."""

    def __init__(self, message: str = "Calendar authentication failed") -> None:
        super().__init__(message, status_code=401)


def _error_message(error: HttpError) -> str:
    """Pull the human-readable message out of an ``HttpError`` body."""
    content = error.content or b""
    try:
        body = json.loads(content.decode("utf-8"))
        return str(body["error"]["message"])
    except (ValueError, KeyError, TypeError):
        pass
    text = content.decode("utf-8", errors="replace").strip()
    return text or str(error)


def classify_http_error(error: HttpError) -> CalendarAPIError:
    """Map an ``HttpError`` to a calendar exception, keeping status and message.

    Args:
        error: The ``googleapiclient.errors.HttpError`` to classify.

    Returns:
        :class:`CalendarAuthError` for HTTP 401, otherwise a
        :class:`CalendarAPIError` with the response status.
    """
    status = getattr(error.resp, "status", None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None

    message = _error_message(error)
    if status == 401:
        return CalendarAuthError(message)
    return CalendarAPIError(message, status_code=status)
