"""Data models for nlcal."""

from __future__ import annotations

from nlcal.models.event import (
    REQUIRED_EVENT_FIELDS,
    EventRecord,
    ExtractionRequest,
    ModelInvocation,
    ResolvedDateContext,
    validate_event_payload,
)

__all__ = [
    "REQUIRED_EVENT_FIELDS",
    "EventRecord",
    "ExtractionRequest",
    "ModelInvocation",
    "ResolvedDateContext",
    "validate_event_payload",
]
