"""nlcal: natural-language text to Google Calendar events.

Builds a date-anchored prompt, asks a language model for a JSON event,
validates it and inserts it into Google Calendar.
"""

from __future__ import annotations

from nlcal.exceptions import (
    ModelUnavailableError,
    NlcalError,
    UnparsableModelOutputError,
    ValidationError,
)
from nlcal.models.event import (
    EventRecord,
    ExtractionRequest,
    ModelInvocation,
    ResolvedDateContext,
    validate_event_payload,
)
from nlcal.parser import parse_model_response
from nlcal.prompts import build_prompt

__version__ = "0.1.0"

__all__ = [
    "EventRecord",
    "ExtractionRequest",
    "ModelInvocation",
    "ModelUnavailableError",
    "NlcalError",
    "ResolvedDateContext",
    "UnparsableModelOutputError",
    "ValidationError",
    "build_prompt",
    "parse_model_response",
    "validate_event_payload",
]
