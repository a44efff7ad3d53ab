"""Parse the model's raw text into an event dict.

Models are told to answer with a bare JSON object but regularly wrap it in
prose or code fences.  :func:`extract_json_object` tries the top-level
``{...}`` fragments in order and returns the first that decodes, which
copes with leading commentary, trailing text and several JSON-like
fragments in one reply.  Objects nested in a malformed fragment are never
returned.
"""

from __future__ import annotations

import json
from typing import Any

from nlcal.exceptions import UnparsableModelOutputError

_decoder = json.JSONDecoder()


def _brace_span_end(text: str, start: int) -> int:
    """Return the index just past the brace closing ``text[start]``.

    Braces inside JSON strings are ignored.  An unclosed brace spans to the
    end of *text*.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return len(text)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first top-level JSON object embedded in *text*, or ``None``.

    Tries a :meth:`json.JSONDecoder.raw_decode` at the first ``{``.  If that
    fragment is not valid JSON, the scan resumes after its closing brace,
    never inside it, so a nested object of a malformed reply is not
    mistaken for the event.

    Args:
        text: Arbitrary model output.

    Returns:
        The decoded object, or ``None`` if no top-level fragment decodes.
    """
    start = text.find("{")
    while start != -1:
        try:
            value, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            end = _brace_span_end(text, start)
        else:
            if isinstance(value, dict):
                return value
        start = text.find("{", end)
    return None


def parse_model_response(raw_text: str) -> dict[str, Any]:
    """Parse the model's reply into a JSON object.

    The embedded-object scan runs first; if it finds nothing the whole
    text is handed to :func:`json.loads`.  Field presence is *not* checked
    here -- see :func:`~nlcal.models.event.validate_event_payload`.

    Args:
        raw_text: The raw text returned by the model.

    Returns:
        The decoded JSON object.

    Raises:
        UnparsableModelOutputError: If the text is empty, contains no
            decodable JSON, or decodes to something other than an object.
    """
    if not raw_text or not raw_text.strip():
        raise UnparsableModelOutputError("Empty response from model", raw_response=raw_text or "")

    found = extract_json_object(raw_text)
    if found is not None:
        return found

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise UnparsableModelOutputError(
            f"Model response is not valid JSON: {exc}", raw_response=raw_text
        ) from exc

    if not isinstance(data, dict):
        raise UnparsableModelOutputError(
            f"Model response is JSON {type(data).__name__}, expected an object",
            raw_response=raw_text,
        )
    return data
