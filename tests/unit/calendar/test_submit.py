"""Tests for :func:`nlcal.calendar.submit.submit_event`."""

from __future__ import annotations

from unittest.mock import create_autospec

import pytest

from nlcal.calendar.client import GoogleCalendarClient
from nlcal.calendar.exceptions import CalendarAPIError
from nlcal.calendar.submit import SubmissionResult, submit_event
from nlcal.models.event import EventRecord


def test_submit_returns_id_and_link(record: EventRecord) -> None:
    client = create_autospec(GoogleCalendarClient, instance=True)
    client.insert_event.return_value = {
        "id": "evt-9",
        "htmlLink": "https://calendar.google.com/event?eid=evt-9",
        "status": "confirmed",
    }

    result = submit_event(record, client)

    assert result == SubmissionResult(
        event_id="evt-9", event_link="https://calendar.google.com/event?eid=evt-9"
    )
    client.insert_event.assert_called_once_with(record, calendar_id="primary")


def test_payload_shape() -> None:
    result = SubmissionResult(event_id="evt-9", event_link="https://link")

    assert result.to_payload() == {
        "success": True,
        "eventId": "evt-9",
        "eventLink": "https://link",
    }


def test_collaborator_error_propagates_unchanged(record: EventRecord) -> None:
    client = create_autospec(GoogleCalendarClient, instance=True)
    error = CalendarAPIError("Rate Limit Exceeded", status_code=429)
    client.insert_event.side_effect = error

    with pytest.raises(CalendarAPIError) as exc_info:
        submit_event(record, client)

    assert exc_info.value is error
