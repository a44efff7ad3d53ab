"""Entry point for ``python -m nlcal``.

Subcommands:
    serve    -- Run the HTTP API under uvicorn.
    extract  -- Convert one piece of text to an event and print it as JSON,
                optionally creating it on the calendar (``--submit``).

Exit codes:
    0 -- Success.
    1 -- Configuration, model, validation or calendar error.
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import json
import sys

from nlcal.calendar.auth import CalendarSession
from nlcal.calendar.client import GoogleCalendarClient
from nlcal.calendar.exceptions import CalendarAPIError
from nlcal.calendar.submit import submit_event
from nlcal.config import ConfigError, load_settings
from nlcal.exceptions import NlcalError
from nlcal.llm import build_text_generator
from nlcal.log import setup_logging
from nlcal.models.event import ExtractionRequest
from nlcal.pipeline import extract_event


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="nlcal",
        description="Turn natural-language text into Google Calendar events.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- "serve" ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)."
    )
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port to listen on (default: PORT or 3000)."
    )
    serve_parser.add_argument(
        "-v", "--verbose", action="store_true", default=False,
        help="Enable debug-level logging.",
    )

    # --- "extract" ----------------------------------------------------
    extract_parser = subparsers.add_parser(
        "extract", help="Convert text to an event and print it as JSON."
    )
    extract_parser.add_argument("text", help="Event description, e.g. 'lunch with Sara tomorrow'.")
    extract_parser.add_argument(
        "--timezone", default=None, help="IANA timezone (default: TIMEZONE or host zone)."
    )
    extract_parser.add_argument(
        "--submit", action="store_true", default=False,
        help="Also create the event using the stored OAuth token.",
    )
    extract_parser.add_argument(
        "-v", "--verbose", action="store_true", default=False,
        help="Enable debug-level logging.",
    )

    return parser


def _apply_log_level(level: str, args: argparse.Namespace) -> None:
    """Switch to the configured log level unless ``--verbose`` was given."""
    if args.verbose:
        return
    try:
        setup_logging(level)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _handle_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from nlcal.api import create_app

    settings = load_settings()
    _apply_log_level(settings.log_level, args)
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port or settings.port, log_config=None)
    return 0


def _handle_extract(args: argparse.Namespace) -> int:
    if not args.text.strip():
        print("Error: text must not be empty", file=sys.stderr)
        return 1

    settings = load_settings()
    _apply_log_level(settings.log_level, args)
    request = ExtractionRequest(text=args.text, timezone=args.timezone or settings.timezone)
    extraction = extract_event(request, build_text_generator(settings))

    output = extraction.record.to_payload()
    if args.submit:
        session = CalendarSession.from_settings(settings)
        session.load()
        result = submit_event(extraction.record, GoogleCalendarClient(session))
        output = {**result.to_payload(), "eventData": output}

    print(json.dumps(output, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the nlcal CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    setup_logging("DEBUG" if args.verbose else "INFO")

    try:
        if args.command == "serve":
            return _handle_serve(args)
        return _handle_extract(args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    except (NlcalError, CalendarAPIError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
