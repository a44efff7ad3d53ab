"""Custom exceptions for the nlcal extraction pipeline.

Each exception carries the HTTP ``status_code`` the API layer answers with,
so request handlers can let them propagate and rely on the registered
exception handlers to render ``{"error": ...}`` bodies.
"""

from __future__ import annotations


class NlcalError(Exception):
    """Base class for all pipeline failures.

    Attributes:
        status_code: HTTP status code used when the error reaches the API.
    """

    status_code: int = 500


class ValidationError(NlcalError):
    """Raised when a request or an extracted event is missing data or is invalid.

    User-correctable; never retried.

    Attributes:
        missing_fields: Names of required fields that were absent or blank.
            Empty when the failure is about a malformed value instead.
    """

    status_code = 400

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])


class ModelUnavailableError(NlcalError):
    """Raised when the text-generation backend cannot be reached or errors out."""

    status_code = 502


class UnparsableModelOutputError(NlcalError):
    """Raised when the model's text does not contain a usable JSON object.

    Attributes:
        raw_response: The raw model output that failed to parse.  Logged for
            diagnosis, never returned to API callers.
    """

    status_code = 500

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response
