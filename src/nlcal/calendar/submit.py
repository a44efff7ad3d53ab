"""Submission adapter: hand a validated event to the calendar collaborator.

Submission is the last step of every request, so there is nothing to
compensate on failure: the event is either created or the collaborator's
error propagates unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass

from nlcal.calendar.client import PRIMARY_CALENDAR, GoogleCalendarClient
from nlcal.models.event import EventRecord


@dataclass(frozen=True)
class SubmissionResult:
    """A created calendar event.

    Attributes:
        event_id: Google Calendar event id.
        event_link: Browser link to the event.
    """

    event_id: str
    event_link: str

    def to_payload(self) -> dict:
        return {"success": True, "eventId": self.event_id, "eventLink": self.event_link}


def submit_event(
    record: EventRecord,
    client: GoogleCalendarClient,
    calendar_id: str = PRIMARY_CALENDAR,
) -> SubmissionResult:
    """Create *record* on the calendar.

    Raises:
        CalendarAPIError: Propagated from the client with the
            collaborator's status code and message.
    """
    created = client.insert_event(record, calendar_id=calendar_id)
    return SubmissionResult(
        event_id=created.get("id", ""),
        event_link=created.get("htmlLink", ""),
    )
