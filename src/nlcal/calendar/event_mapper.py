"""Map an :class:`~nlcal.models.event.EventRecord` to a Calendar API body.

The record's datetimes already carry explicit UTC offsets, so they are
passed through as ``dateTime`` values without a separate ``timeZone``.
"""

from __future__ import annotations

from nlcal.models.event import EventRecord


def map_to_google_event(record: EventRecord) -> dict:
    """Convert a validated record into an ``events().insert()`` body.

    Args:
        record: The event to submit.

    Returns:
        A ``dict`` conforming to the Google Calendar Event resource schema.
    """
    return {
        "summary": record.summary,
        "description": record.description or record.summary,
        "start": {"dateTime": record.start_date_time},
        "end": {"dateTime": record.end_date_time},
    }
