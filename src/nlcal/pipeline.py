"""Extraction pipeline: free text to a validated :class:`EventRecord`.

Four steps, each in its own module:

1. **Anchor** -- resolve today/tomorrow/offset in the request's timezone
   (:mod:`nlcal.dates`).
2. **Prompt** -- build the instruction string (:mod:`nlcal.prompts`).
3. **Generate** -- one non-streamed call to the configured
   :class:`~nlcal.llm.TextGenerator`.
4. **Parse and validate** -- pull the JSON object out of the reply
   (:mod:`nlcal.parser`) and check it (:func:`validate_event_payload`).

Failures propagate as :mod:`nlcal.exceptions` types; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from nlcal.dates import resolve_date_context
from nlcal.exceptions import UnparsableModelOutputError, ValidationError
from nlcal.llm import TextGenerator
from nlcal.models.event import (
    EventRecord,
    ExtractionRequest,
    ModelInvocation,
    validate_event_payload,
)
from nlcal.parser import parse_model_response
from nlcal.prompts import build_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one successful extraction.

    Attributes:
        record: The validated event.
        invocation: The prompt and raw reply that produced it.
    """

    record: EventRecord
    invocation: ModelInvocation


def extract_event(
    request: ExtractionRequest,
    generator: TextGenerator,
    now: datetime | None = None,
) -> ExtractionResult:
    """Run the extraction pipeline for a single request.

    Args:
        request: The text and optional timezone.
        generator: Backend used for the model call.
        now: Override for the current instant (useful for testing).

    Returns:
        An :class:`ExtractionResult` with the validated event.

    Raises:
        ModelUnavailableError: If the backend call fails.
        UnparsableModelOutputError: If the reply holds no JSON object.
        ValidationError: If the object lacks required fields or carries
            malformed datetimes.
    """
    context = resolve_date_context(request.timezone, now)
    prompt = build_prompt(request.text, context)
    logger.debug("Prompt sent to model:\n%s", prompt)

    raw_text = generator.generate(prompt)
    invocation = ModelInvocation(prompt=prompt, raw_response=raw_text)
    logger.debug("Raw model response:\n%s", raw_text)

    try:
        payload = parse_model_response(raw_text)
    except UnparsableModelOutputError as exc:
        logger.error("Unparsable model output: %s | Raw response: %s", exc, exc.raw_response)
        raise

    try:
        record = validate_event_payload(payload)
    except ValidationError as exc:
        logger.warning("Model output failed validation: %s | Parsed object: %s", exc, payload)
        raise

    logger.info(
        "Extracted event '%s' (%s -> %s)",
        record.summary,
        record.start_date_time,
        record.end_date_time,
    )
    return ExtractionResult(record=record, invocation=invocation)
