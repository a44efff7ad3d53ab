"""Data models for the text-to-event pipeline.

- :class:`ExtractionRequest` -- the free text plus an optional timezone.
- :class:`ResolvedDateContext` -- "today", "tomorrow" and the UTC offset in
  the request's timezone, used to anchor the prompt.
- :class:`EventRecord` -- a validated event ready for the Calendar API.
- :class:`ModelInvocation` -- the prompt sent and the raw text received.

:func:`validate_event_payload` is the single gate every event passes
through before submission, whether it came from the model or from a
client posting fields directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from nlcal.exceptions import ValidationError

REQUIRED_EVENT_FIELDS: tuple[str, ...] = ("summary", "startDateTime", "endDateTime")


# ---------------------------------------------------------------------------
# Request and prompt context
# ---------------------------------------------------------------------------


class ExtractionRequest(BaseModel):
    """A single text-to-event request.

    Attributes:
        text: The natural-language description of the event.
        timezone: IANA zone id (``"America/Chicago"``) or a ``±HH:MM``
            offset.  ``None`` means the server default / host zone.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    timezone: str | None = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


@dataclass(frozen=True)
class ResolvedDateContext:
    """Date anchors for one request, computed from "now" in the target zone.

    Attributes:
        today: The current calendar date in the zone.
        tomorrow: ``today`` plus one day.
        timezone_id: The zone name shown to the model.
        timezone_offset: The zone's current UTC offset as ``±HH:MM``.
    """

    today: date
    tomorrow: date
    timezone_id: str
    timezone_offset: str


@dataclass(frozen=True)
class ModelInvocation:
    """Prompt and raw response of a single model call."""

    prompt: str
    raw_response: str


# ---------------------------------------------------------------------------
# EventRecord
# ---------------------------------------------------------------------------


def _parse_offset_datetime(value: str) -> datetime:
    """Parse an ISO 8601 string that must carry a numeric UTC offset.

    ``Z`` suffixes and naive values are rejected so the Calendar API never
    has to guess a timezone.
    """
    if value.strip().upper().endswith("Z"):
        raise ValueError(f"{value!r} uses 'Z'; a numeric UTC offset is required")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{value!r} is not a valid ISO 8601 datetime") from exc
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise ValueError(f"{value!r} has no UTC offset")
    return parsed


class EventRecord(BaseModel):
    """A calendar event that passed validation.

    Datetimes are kept as the exact ISO 8601 strings received so the
    submitted event matches what the model (or client) produced.

    Attributes:
        summary: Event title.
        description: Longer text; defaults to ``summary``.
        start_date_time: ISO 8601 start with an explicit UTC offset.
        end_date_time: ISO 8601 end with an explicit UTC offset, strictly
            after the start.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str = Field(min_length=1)
    description: str = ""
    start_date_time: str = Field(alias="startDateTime")
    end_date_time: str = Field(alias="endDateTime")

    @field_validator("summary")
    @classmethod
    def _strip_summary(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("summary must not be blank")
        return value

    @field_validator("start_date_time", "end_date_time")
    @classmethod
    def _require_offset(cls, value: str) -> str:
        _parse_offset_datetime(value)
        return value

    @model_validator(mode="after")
    def _check_range(self) -> EventRecord:
        if self.end_datetime <= self.start_datetime:
            raise ValueError(
                f"endDateTime ({self.end_date_time}) must be after "
                f"startDateTime ({self.start_date_time})"
            )
        return self

    @model_validator(mode="before")
    @classmethod
    def _default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and _is_blank(data.get("description")):
            data = dict(data)
            data["description"] = data.get("summary", "")
        return data

    @property
    def start_datetime(self) -> datetime:
        """The start as an aware ``datetime``."""
        return datetime.fromisoformat(self.start_date_time)

    @property
    def end_datetime(self) -> datetime:
        """The end as an aware ``datetime``."""
        return datetime.fromisoformat(self.end_date_time)

    def to_payload(self) -> dict[str, str]:
        """Return the camelCase JSON shape used on the wire."""
        return self.model_dump(by_alias=True)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_event_payload(payload: Any) -> EventRecord:
    """Turn a loosely-typed event dict into an :class:`EventRecord`.

    Checks, in order: required fields present and non-blank, then the
    semantic rules enforced by :class:`EventRecord` (offset-qualified
    ISO 8601 datetimes, end after start).

    Args:
        payload: The decoded JSON object, usually from the model or an
            API request body.

    Returns:
        The validated event record.

    Raises:
        ValidationError: If *payload* is not an object, required fields
            are missing, or a value is malformed.
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            f"Event data must be a JSON object, got {type(payload).__name__}"
        )

    missing = [name for name in REQUIRED_EVENT_FIELDS if _is_blank(payload.get(name))]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )

    fields = {
        "summary": payload["summary"],
        "description": payload.get("description"),
        "startDateTime": payload["startDateTime"],
        "endDateTime": payload["endDateTime"],
    }
    try:
        return EventRecord.model_validate(fields)
    except PydanticValidationError as exc:
        details = "; ".join(_describe_error(err) for err in exc.errors())
        raise ValidationError(f"Invalid event data: {details}") from exc


def _describe_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{location}: {message}" if location else message
