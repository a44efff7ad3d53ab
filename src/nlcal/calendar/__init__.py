"""Google Calendar integration for nlcal."""

from __future__ import annotations

from nlcal.calendar.auth import CalendarSession
from nlcal.calendar.client import GoogleCalendarClient
from nlcal.calendar.event_mapper import map_to_google_event
from nlcal.calendar.exceptions import CalendarAPIError, CalendarAuthError
from nlcal.calendar.submit import SubmissionResult, submit_event

__all__ = [
    "CalendarAPIError",
    "CalendarAuthError",
    "CalendarSession",
    "GoogleCalendarClient",
    "SubmissionResult",
    "map_to_google_event",
    "submit_event",
]
