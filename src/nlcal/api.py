"""FastAPI application exposing the text-to-event service.

Routes:

- ``POST /api/text-to-event`` -- run the extraction pipeline on ``{"text"}``
  (timezone from the ``X-Timezone`` header) and create the event.
- ``POST /api/create-event`` -- create an event from explicit fields.
- ``GET /auth/google`` and ``GET /auth/google/callback`` -- OAuth web flow.
- Static files from ``settings.static_dir`` at ``/`` when the directory
  exists.

Blocking work (model call, calendar insert) runs in Starlette's thread
pool, so concurrent requests proceed in parallel.  Errors propagate as
typed exceptions and are rendered by the handlers registered in
:func:`create_app` as ``{"error": message}``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from nlcal import __version__
from nlcal.calendar.auth import CalendarSession
from nlcal.calendar.client import GoogleCalendarClient
from nlcal.calendar.exceptions import CalendarAPIError
from nlcal.calendar.submit import submit_event
from nlcal.config import ConfigError, Settings
from nlcal.exceptions import NlcalError, UnparsableModelOutputError, ValidationError
from nlcal.llm import TextGenerator, build_text_generator
from nlcal.models.event import ExtractionRequest, validate_event_payload
from nlcal.pipeline import extract_event

logger = logging.getLogger(__name__)

TIMEZONE_HEADER = "X-Timezone"


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Decode the request body as a JSON object; an empty body is ``{}``."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def create_app(
    settings: Settings,
    generator: TextGenerator | None = None,
    session: CalendarSession | None = None,
    calendar_client: GoogleCalendarClient | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Loaded application settings.
        generator: Model backend; built from *settings* when ``None``.
        session: OAuth session; built from *settings* and loaded from the
            token file when ``None``.
        calendar_client: Calendar client; built around *session* when
            ``None``.  Pass a client with a mocked service in tests.

    Returns:
        The configured application.
    """
    if generator is None:
        generator = build_text_generator(settings)
    if session is None:
        session = CalendarSession.from_settings(settings)
        session.load()
    if calendar_client is None:
        calendar_client = GoogleCalendarClient(session)

    app = FastAPI(title="nlcal", version=__version__)
    app.state.settings = settings
    app.state.generator = generator
    app.state.session = session
    app.state.calendar_client = calendar_client

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------

    @app.exception_handler(NlcalError)
    async def _pipeline_error(_request: Request, exc: NlcalError) -> JSONResponse:
        if isinstance(exc, UnparsableModelOutputError):
            # Raw output was logged by the pipeline; keep it out of the response.
            message = "Failed to parse the generated calendar event data"
        else:
            message = str(exc)
        if exc.status_code >= 500:
            logger.error("Request failed (%d): %s", exc.status_code, exc)
        else:
            logger.info("Request rejected (%d): %s", exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(CalendarAPIError)
    async def _calendar_error(_request: Request, exc: CalendarAPIError) -> JSONResponse:
        logger.error("Calendar error (%d): %s", exc.status_code, exc)
        message = str(exc) or "Failed to create event"
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(ConfigError)
    async def _config_error(_request: Request, exc: ConfigError) -> JSONResponse:
        logger.error("Configuration error: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    @app.get("/auth/google")
    def auth_google() -> RedirectResponse:
        return RedirectResponse(session.authorization_url())

    @app.get("/auth/google/callback")
    def auth_google_callback(code: str | None = None, state: str | None = None) -> RedirectResponse:
        if not code:
            raise ValidationError("Missing authorization code", missing_fields=["code"])
        session.exchange_code(code, state=state)
        return RedirectResponse("/")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @app.post("/api/create-event")
    async def create_event(request: Request) -> JSONResponse:
        payload = await _read_json_object(request)
        record = validate_event_payload(payload)
        result = await run_in_threadpool(submit_event, record, calendar_client)
        return JSONResponse(status_code=201, content=result.to_payload())

    @app.post("/api/text-to-event")
    async def text_to_event(request: Request) -> JSONResponse:
        payload = await _read_json_object(request)
        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Missing required field: text", missing_fields=["text"])

        timezone = request.headers.get(TIMEZONE_HEADER) or settings.timezone
        extraction_request = ExtractionRequest(text=text, timezone=timezone)

        extraction = await run_in_threadpool(extract_event, extraction_request, generator)
        result = await run_in_threadpool(submit_event, extraction.record, calendar_client)

        body = result.to_payload()
        body["eventData"] = extraction.record.to_payload()
        return JSONResponse(status_code=201, content=body)

    # Mounted last so the API routes above take precedence.
    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving static files from %s", static_dir)

    return app
