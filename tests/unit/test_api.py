"""Tests for the FastAPI application in :mod:`nlcal.api`.

The model is a scripted :class:`TextGenerator`, the OAuth session is a mock
and the Calendar API service resource is a ``MagicMock`` injected into a
real :class:`GoogleCalendarClient`, so routing, validation, error mapping
and submission all run unmodified.
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock, create_autospec

import pytest
from fastapi.testclient import TestClient
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError
from httplib2 import Response

from nlcal.api import create_app
from nlcal.calendar.auth import CalendarSession
from nlcal.calendar.client import GoogleCalendarClient
from nlcal.calendar.exceptions import CalendarAuthError
from nlcal.config import ConfigError, Settings
from nlcal.exceptions import ModelUnavailableError
from nlcal.llm import TextGenerator

_EVENT_JSON = (
    '{"summary":"Team Meeting with Sara","description":"Team Meeting with Sara",'
    '"startDateTime":"2025-03-11T15:00:00-05:00","endDateTime":"2025-03-11T17:00:00-05:00"}'
)
_CREATED = {"id": "evt-123", "htmlLink": "https://calendar.google.com/event?eid=evt-123"}


class ScriptedGenerator(TextGenerator):
    def __init__(self, reply: str = _EVENT_JSON) -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        model_endpoint="http://ollama.test/api/generate",
        model_name="llama3.2",
        token_path=str(tmp_path / "tokens.json"),
        static_dir=str(tmp_path / "no-static"),
    )


@pytest.fixture()
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture()
def session() -> MagicMock:
    return create_autospec(CalendarSession, instance=True)


@pytest.fixture()
def service() -> MagicMock:
    service = MagicMock()
    service.events.return_value.insert.return_value.execute.return_value = dict(_CREATED)
    return service


@pytest.fixture()
def client(
    settings: Settings,
    generator: ScriptedGenerator,
    session: MagicMock,
    service: MagicMock,
) -> Generator[TestClient, None, None]:
    app = create_app(
        settings,
        generator=generator,
        session=session,
        calendar_client=GoogleCalendarClient(session, service=service),
    )
    with TestClient(app) as test_client:
        yield test_client


def _http_error(status: int, message: str) -> HttpError:
    content = ('{"error": {"code": %d, "message": "%s"}}' % (status, message)).encode()
    return HttpError(Response({"status": str(status)}), content)


# ---------------------------------------------------------------------------
# POST /api/text-to-event
# ---------------------------------------------------------------------------


class TestTextToEvent:
    def test_success(self, client: TestClient, service: MagicMock) -> None:
        response = client.post(
            "/api/text-to-event",
            json={"text": "Schedule a team meeting with Sara tomorrow at 3pm for 2 hours"},
            headers={"X-Timezone": "America/Chicago"},
        )

        assert response.status_code == 201
        assert response.json() == {
            "success": True,
            "eventId": "evt-123",
            "eventLink": _CREATED["htmlLink"],
            "eventData": {
                "summary": "Team Meeting with Sara",
                "description": "Team Meeting with Sara",
                "startDateTime": "2025-03-11T15:00:00-05:00",
                "endDateTime": "2025-03-11T17:00:00-05:00",
            },
        }
        insert_kwargs = service.events.return_value.insert.call_args.kwargs
        assert insert_kwargs["calendarId"] == "primary"
        assert insert_kwargs["body"]["start"] == {"dateTime": "2025-03-11T15:00:00-05:00"}

    def test_timezone_header_anchors_prompt(
        self, client: TestClient, generator: ScriptedGenerator
    ) -> None:
        client.post(
            "/api/text-to-event",
            json={"text": "lunch tomorrow"},
            headers={"X-Timezone": "Asia/Kolkata"},
        )

        assert "USER'S TIMEZONE IS: Asia/Kolkata (UTC offset +05:30)" in generator.prompts[0]

    def test_default_timezone_from_settings(
        self,
        settings: Settings,
        generator: ScriptedGenerator,
        session: MagicMock,
        service: MagicMock,
    ) -> None:
        settings = Settings(
            model_endpoint=settings.model_endpoint,
            model_name=settings.model_name,
            timezone="Asia/Tokyo",
            static_dir=settings.static_dir,
        )
        app = create_app(
            settings,
            generator=generator,
            session=session,
            calendar_client=GoogleCalendarClient(session, service=service),
        )

        with TestClient(app) as test_client:
            test_client.post("/api/text-to-event", json={"text": "lunch tomorrow"})

        assert "Asia/Tokyo (UTC offset +09:00)" in generator.prompts[0]

    @pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": "   "}, {"text": 42}])
    def test_missing_text_is_400_without_model_call(
        self, client: TestClient, generator: ScriptedGenerator, body: dict
    ) -> None:
        response = client.post("/api/text-to-event", json=body)

        assert response.status_code == 400
        assert "text" in response.json()["error"]
        assert generator.prompts == []

    def test_empty_body_is_400(self, client: TestClient, generator: ScriptedGenerator) -> None:
        response = client.post("/api/text-to-event")

        assert response.status_code == 400
        assert generator.prompts == []

    def test_invalid_json_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/text-to-event",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "valid JSON" in response.json()["error"]

    def test_model_unavailable(
        self, client: TestClient, generator: ScriptedGenerator, service: MagicMock
    ) -> None:
        generator.error = ModelUnavailableError("Model endpoint unreachable: refused")

        response = client.post("/api/text-to-event", json={"text": "lunch"})

        assert response.status_code == 502
        assert response.json() == {"error": "Model endpoint unreachable: refused"}
        service.events.return_value.insert.assert_not_called()

    def test_unparsable_output_hides_raw_response(
        self, client: TestClient, generator: ScriptedGenerator
    ) -> None:
        generator.reply = "SECRET-MODEL-CHATTER without json"

        response = client.post("/api/text-to-event", json={"text": "lunch"})

        assert response.status_code == 500
        assert "SECRET-MODEL-CHATTER" not in response.text
        assert response.json() == {"error": "Failed to parse the generated calendar event data"}

    def test_model_output_missing_field(
        self, client: TestClient, generator: ScriptedGenerator, service: MagicMock
    ) -> None:
        generator.reply = '{"summary":"Lunch","endDateTime":"2025-03-11T13:00:00-05:00"}'

        response = client.post("/api/text-to-event", json={"text": "lunch"})

        assert response.status_code == 400
        assert "startDateTime" in response.json()["error"]
        service.events.return_value.insert.assert_not_called()

    def test_collaborator_error_passes_through(
        self, client: TestClient, service: MagicMock
    ) -> None:
        service.events.return_value.insert.return_value.execute.side_effect = _http_error(
            403, "Insufficient permissions for this calendar"
        )

        response = client.post("/api/text-to-event", json={"text": "lunch"})

        assert response.status_code == 403
        assert response.json() == {"error": "Insufficient permissions for this calendar"}


# ---------------------------------------------------------------------------
# POST /api/create-event
# ---------------------------------------------------------------------------


class TestCreateEvent:
    def test_success(
        self, client: TestClient, generator: ScriptedGenerator, service: MagicMock
    ) -> None:
        response = client.post(
            "/api/create-event",
            json={
                "summary": "Dentist",
                "startDateTime": "2025-04-15T10:00:00-05:00",
                "endDateTime": "2025-04-15T11:30:00-05:00",
            },
        )

        assert response.status_code == 201
        assert response.json() == {
            "success": True,
            "eventId": "evt-123",
            "eventLink": _CREATED["htmlLink"],
        }
        body = service.events.return_value.insert.call_args.kwargs["body"]
        assert body["description"] == "Dentist"
        assert generator.prompts == []

    def test_missing_fields(self, client: TestClient, service: MagicMock) -> None:
        response = client.post("/api/create-event", json={"summary": "Dentist"})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Missing required fields: startDateTime, endDateTime"
        }
        service.events.return_value.insert.assert_not_called()

    def test_network_failure_defaults_to_500(
        self, client: TestClient, service: MagicMock
    ) -> None:
        service.events.return_value.insert.return_value.execute.side_effect = OSError("reset")

        response = client.post(
            "/api/create-event",
            json={
                "summary": "Dentist",
                "startDateTime": "2025-04-15T10:00:00-05:00",
                "endDateTime": "2025-04-15T11:30:00-05:00",
            },
        )

        assert response.status_code == 500
        assert "reset" in response.json()["error"]

    def test_revoked_token_renders_json_error(
        self, client: TestClient, service: MagicMock
    ) -> None:
        service.events.return_value.insert.return_value.execute.side_effect = RefreshError(
            "invalid_grant"
        )

        response = client.post(
            "/api/create-event",
            json={
                "summary": "Dentist",
                "startDateTime": "2025-04-15T10:00:00-05:00",
                "endDateTime": "2025-04-15T11:30:00-05:00",
            },
        )

        assert response.status_code == 401
        assert response.headers["content-type"] == "application/json"
        assert "invalid_grant" in response.json()["error"]

    def test_not_authorized(self, settings: Settings, generator: ScriptedGenerator) -> None:
        session = create_autospec(CalendarSession, instance=True)
        session.credentials.side_effect = CalendarAuthError(
            "Calendar is not authorized; visit /auth/google first"
        )
        app = create_app(
            settings,
            generator=generator,
            session=session,
            calendar_client=GoogleCalendarClient(session),
        )

        with TestClient(app) as test_client:
            response = test_client.post(
                "/api/create-event",
                json={
                    "summary": "Dentist",
                    "startDateTime": "2025-04-15T10:00:00-05:00",
                    "endDateTime": "2025-04-15T11:30:00-05:00",
                },
            )

        assert response.status_code == 401
        assert "/auth/google" in response.json()["error"]


# ---------------------------------------------------------------------------
# OAuth routes and static files
# ---------------------------------------------------------------------------


class TestAuthRoutes:
    def test_authorize_redirects(self, client: TestClient, session: MagicMock) -> None:
        session.authorization_url.return_value = "https://accounts.google.com/o/oauth2/auth?x=1"

        response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "https://accounts.google.com/o/oauth2/auth?x=1"

    def test_callback_exchanges_code(self, client: TestClient, session: MagicMock) -> None:
        response = client.get(
            "/auth/google/callback?code=abc&state=st-1", follow_redirects=False
        )

        assert response.status_code == 307
        assert response.headers["location"] == "/"
        session.exchange_code.assert_called_once_with("abc", state="st-1")

    def test_callback_without_code(self, client: TestClient, session: MagicMock) -> None:
        response = client.get("/auth/google/callback", follow_redirects=False)

        assert response.status_code == 400
        session.exchange_code.assert_not_called()

    def test_oauth_not_configured(self, client: TestClient, session: MagicMock) -> None:
        session.authorization_url.side_effect = ConfigError(
            "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set to run the OAuth flow"
        )

        response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 500
        assert "GOOGLE_CLIENT_ID" in response.json()["error"]


class TestStaticFiles:
    def test_static_index_served(
        self, tmp_path: Path, generator: ScriptedGenerator, session: MagicMock, service: MagicMock
    ) -> None:
        static = tmp_path / "public"
        static.mkdir()
        (static / "index.html").write_text("<h1>nlcal</h1>")
        settings = Settings(
            model_endpoint="http://ollama.test/api/generate",
            model_name="llama3.2",
            static_dir=str(static),
        )
        app = create_app(
            settings,
            generator=generator,
            session=session,
            calendar_client=GoogleCalendarClient(session, service=service),
        )

        with TestClient(app) as test_client:
            page = test_client.get("/")
            api = test_client.post("/api/text-to-event", json={"text": "lunch"})

        assert page.status_code == 200
        assert "<h1>nlcal</h1>" in page.text
        assert api.status_code == 201
