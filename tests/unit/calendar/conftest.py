"""Shared fixtures for Google Calendar unit tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, create_autospec

import pytest
from google.oauth2.credentials import Credentials

from nlcal.calendar.auth import CalendarSession
from nlcal.models.event import EventRecord, validate_event_payload

REDIRECT_URI = "http://localhost:3000/auth/google/callback"


@pytest.fixture()
def mock_credentials() -> MagicMock:
    """Return a mock Credentials object that reports as valid."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = True
    creds.expired = False
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = '{"token": "fake"}'
    return creds


@pytest.fixture()
def mock_expired_credentials() -> MagicMock:
    """Return a mock Credentials object that is expired but has a refresh token."""
    creds = create_autospec(Credentials, instance=True)
    creds.valid = False
    creds.expired = True
    creds.refresh_token = "fake-refresh-token"
    creds.to_json.return_value = '{"token": "refreshed"}'
    return creds


@pytest.fixture()
def tmp_token_file(tmp_path: Path) -> Path:
    """Return a path for tokens.json in a temp directory (file does not exist yet)."""
    return tmp_path / "tokens.json"


@pytest.fixture()
def session(tmp_token_file: Path) -> CalendarSession:
    return CalendarSession("client-id", "client-secret", REDIRECT_URI, tmp_token_file)


@pytest.fixture()
def record() -> EventRecord:
    return validate_event_payload(
        {
            "summary": "Dentist Appointment",
            "startDateTime": "2025-04-15T10:00:00-05:00",
            "endDateTime": "2025-04-15T11:30:00-05:00",
        }
    )
