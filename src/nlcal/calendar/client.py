"""Thin Google Calendar client for inserting events.

:class:`GoogleCalendarClient` wraps the ``googleapiclient`` service
resource.  Credentials come from an injected
:class:`~nlcal.calendar.auth.CalendarSession` on every call, so a token
refreshed or re-authorized in the meantime is picked up without restarting.

There is no retry: a failed insert is raised as
:class:`~nlcal.calendar.exceptions.CalendarAPIError` carrying the API's
status code and message.
"""

from __future__ import annotations

import logging
from typing import Any

from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from httplib2 import HttpLib2Error

from nlcal.calendar.auth import CalendarSession
from nlcal.calendar.event_mapper import map_to_google_event
from nlcal.calendar.exceptions import CalendarAPIError, CalendarAuthError, classify_http_error
from nlcal.models.event import EventRecord

logger = logging.getLogger(__name__)

# Google Calendar API calendar identifier for the primary calendar.
PRIMARY_CALENDAR = "primary"


class GoogleCalendarClient:
    """Client for the Google Calendar ``events.insert`` call.

    Args:
        session: Source of OAuth credentials.
        service: Optional pre-built ``googleapiclient`` service resource.
            If ``None``, one is built from the session's credentials for
            each call.  Pass a mock here in tests.
    """

    def __init__(self, session: CalendarSession, service: Any | None = None) -> None:
        self._session = session
        self._service = service

    def _get_service(self) -> Any:
        if self._service is not None:
            return self._service
        credentials = self._session.credentials()
        return build("calendar", "v3", credentials=credentials, cache_discovery=False)

    def insert_event(
        self,
        record: EventRecord,
        calendar_id: str = PRIMARY_CALENDAR,
    ) -> dict:
        """Insert *record* into *calendar_id*.

        Args:
            record: The validated event.
            calendar_id: Target calendar (defaults to ``"primary"``).

        Returns:
            The API's event resource ``dict`` (including ``id`` and
            ``htmlLink``).

        Raises:
            CalendarAuthError: If no usable credentials are available, the
                token is rejected while the request runs, or the API answers
                HTTP 401.
            CalendarAPIError: For any other API or transport failure.
        """
        service = self._get_service()
        body = map_to_google_event(record)

        try:
            result = service.events().insert(calendarId=calendar_id, body=body).execute()
        except HttpError as exc:
            error = classify_http_error(exc)
            logger.error("Calendar API error (HTTP %s): %s", error.status_code, error)
            raise error from exc
        except GoogleAuthError as exc:
            # Raised mid-request when the stored token is revoked or refresh fails.
            logger.error("Calendar authorization failed: %s", exc)
            raise CalendarAuthError(f"Calendar authorization failed: {exc}") from exc
        except (HttpLib2Error, OSError, TimeoutError) as exc:
            logger.error("Calendar API unreachable: %s", exc)
            raise CalendarAPIError(f"Calendar API unreachable: {exc}") from exc

        logger.info(
            "Created event '%s' (id=%s) in calendar %s",
            record.summary,
            result.get("id", "?"),
            calendar_id,
        )
        return result
