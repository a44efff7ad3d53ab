"""Prompt builder for the text-to-event extraction call.

Produces one self-contained instruction string: role, date anchors, the
extraction rules, four worked examples and the user's text.  The examples
are generated from the same :class:`~nlcal.models.event.ResolvedDateContext`
as the anchors, so every date the model sees agrees with "today".

The builder is pure: the same text and context always yield the same
prompt.
"""

from __future__ import annotations

import json
from datetime import date, timedelta

from nlcal.models.event import ResolvedDateContext

_MONDAY = 0


def next_weekday(today: date, weekday: int) -> date:
    """Return the first date strictly after *today* falling on *weekday*.

    Args:
        today: The anchor date.
        weekday: ``0`` for Monday through ``6`` for Sunday.
    """
    days_ahead = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)


def next_occurrence(today: date, month: int, day: int) -> date:
    """Return *month*/*day* in the current year, or next year if already past."""
    candidate = date(today.year, month, day)
    if candidate < today:
        candidate = date(today.year + 1, month, day)
    return candidate


def _event(summary: str, description: str, start: str, end: str) -> dict[str, str]:
    return {
        "summary": summary,
        "description": description,
        "startDateTime": start,
        "endDateTime": end,
    }


def build_examples(context: ResolvedDateContext) -> list[tuple[str, dict[str, str]]]:
    """Build the worked input/output pairs shown to the model.

    Args:
        context: Date anchors for the current request.

    Returns:
        A list of ``(input_text, expected_event)`` pairs.
    """
    tz = context.timezone_offset
    tomorrow = context.tomorrow.isoformat()
    dentist_day = next_occurrence(context.today, 4, 15).isoformat()
    kickoff_day = next_weekday(context.today, _MONDAY).isoformat()

    return [
        (
            "Schedule a team meeting tomorrow at 2pm for 45 minutes",
            _event(
                "Team Meeting",
                "Team Meeting",
                f"{tomorrow}T14:00:00{tz}",
                f"{tomorrow}T14:45:00{tz}",
            ),
        ),
        (
            "Schedule a team meeting with Sara tomorrow at 3pm for 2 hours",
            _event(
                "Team Meeting with Sara",
                "Team Meeting with Sara",
                f"{tomorrow}T15:00:00{tz}",
                f"{tomorrow}T17:00:00{tz}",
            ),
        ),
        (
            "Create a dentist appointment on April 15 from 10am to 11:30am",
            _event(
                "Dentist Appointment",
                "Dentist Appointment",
                f"{dentist_day}T10:00:00{tz}",
                f"{dentist_day}T11:30:00{tz}",
            ),
        ),
        (
            "Set up a project kickoff with the marketing team next Monday at 10am",
            _event(
                "Project Kickoff with Marketing Team",
                "Project Kickoff with the Marketing Team",
                f"{kickoff_day}T10:00:00{tz}",
                f"{kickoff_day}T11:00:00{tz}",
            ),
        ),
    ]


def _format_examples(context: ResolvedDateContext) -> str:
    blocks = []
    for text, expected in build_examples(context):
        output = json.dumps(expected, separators=(",", ":"))
        blocks.append(f'Input: "{text}"\nOutput: {output}')
    return "\n\n".join(blocks)


def build_prompt(text: str, context: ResolvedDateContext) -> str:
    """Build the extraction prompt for *text*.

    Args:
        text: The user's natural-language event description, embedded
            verbatim as the final input.
        context: Date anchors from :func:`~nlcal.dates.resolve_date_context`.

    Returns:
        The complete prompt string.
    """
    today = context.today.isoformat()
    tomorrow = context.tomorrow.isoformat()
    next_week = (context.today + timedelta(days=7)).isoformat()
    tz_id = context.timezone_id
    tz = context.timezone_offset

    return f"""\
You are an expert calendar event extraction system designed to accurately convert
natural language text into structured JSON. Identify and precisely extract the key
event components: event type, participants, dates, times, durations and locations.
Preserve all relevant details from the original text.

TODAY'S DATE IS: {today}
USER'S TIMEZONE IS: {tz_id} (UTC offset {tz})

Given a text description of an event, extract the event information and return ONLY
a valid JSON object with these fields:
- summary: The event title INCLUDING any participant names mentioned
- description: A fuller description of the event including participants, purpose and
  any other details from the original text (use the summary if there is nothing more)
- startDateTime: full ISO 8601 start time with a numeric UTC offset
- endDateTime: full ISO 8601 end time with a numeric UTC offset

Rules:
- TODAY'S DATE IS {today}; calculate all relative dates from this date
- Use the user's timezone ({tz_id}) for all datetime calculations
- "Tomorrow" means {tomorrow}
- "Next week" means {next_week} ({today} + 7 days)
- Weekday names ("Friday", "next Monday") mean the next future occurrence of that day
- For events without specified times, assume the following defaults:
  - All-day events start at 00:00:00 and end at 23:59:59
  - Events without a specified time start at 09:00:00
  - If the duration is not specified, assume 1 hour for meetings and calls and
    2 hours for other events
- For dates without a year, assume the current year, or next year if that date has
  already passed relative to {today}
- Every timestamp must end with the numeric offset {tz} (for example
  "{tomorrow}T09:00:00{tz}"); never use "Z" and never omit the offset
- If someone is mentioned (like "with Sara"), include their name in the summary and
  the description

YOUR RESPONSE MUST BE EXACTLY ONE RAW JSON OBJECT. NO OTHER TEXT, EXPLANATION OR
FORMATTING. NO MARKDOWN CODE BLOCKS.

Examples:

{_format_examples(context)}

Now convert the following text to a calendar event JSON:
Input: "{text}"

REMEMBER: RESPOND WITH RAW JSON ONLY.
"""
