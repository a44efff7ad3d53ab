"""Text-generation backends for event extraction.

The pipeline only needs "prompt in, text out", expressed as the
:class:`TextGenerator` interface.  Two implementations are provided:

- :class:`OllamaClient` -- posts ``{model, prompt, stream: false}`` to an
  HTTP generate endpoint and reads the ``response`` field.
- :class:`GeminiClient` -- calls Google Gemini through ``google-genai``.

Neither retries: a failed call surfaces as
:class:`~nlcal.exceptions.ModelUnavailableError` for the caller to report.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from nlcal.config import Settings
from nlcal.exceptions import ModelUnavailableError

logger = logging.getLogger(__name__)


class TextGenerator(ABC):
    """A backend that turns a prompt into raw text."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's complete, non-streamed reply to *prompt*.

        Raises:
            ModelUnavailableError: If the backend cannot be reached or
                reports a failure.
        """


class OllamaClient(TextGenerator):
    """Client for an Ollama-style ``/api/generate`` endpoint.

    Args:
        endpoint: Full URL of the generate endpoint.
        model: Model identifier sent with each request.
        http_client: Optional pre-built :class:`httpx.Client`.  Pass a
            mock or a client with a ``MockTransport`` in tests.
    """

    def __init__(
        self,
        endpoint: str,
        model: str,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._model = model
        # Generation can take arbitrarily long; no client-side timeout.
        self._http = http_client or httpx.Client(timeout=None)

    def generate(self, prompt: str) -> str:
        payload = {"model": self._model, "prompt": prompt, "stream": False}
        try:
            response = self._http.post(self._endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Model endpoint %s returned HTTP %d", self._endpoint, exc.response.status_code
            )
            raise ModelUnavailableError(
                f"Model endpoint returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Model endpoint %s unreachable: %s", self._endpoint, exc)
            raise ModelUnavailableError(f"Model endpoint unreachable: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ModelUnavailableError("Model endpoint returned a non-JSON body") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ModelUnavailableError("Model endpoint reply has no 'response' text")
        return text

    def close(self) -> None:
        self._http.close()


class GeminiClient(TextGenerator):
    """Client for Google Gemini via the ``google-genai`` SDK.

    Args:
        api_key: Google Gemini API key.
        model: Model identifier, e.g. ``"gemini-2.0-flash"``.
        base_url: Optional API base URL override.
    """

    def __init__(self, api_key: str, model: str, base_url: str | None = None) -> None:
        http_options = genai_types.HttpOptions(base_url=base_url) if base_url else None
        self._client = genai.Client(api_key=api_key, http_options=http_options)
        self._model = model

    def generate(self, prompt: str) -> str:
        config = genai_types.GenerateContentConfig(response_mime_type="application/json")
        try:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error: %s", exc)
            raise ModelUnavailableError(f"Gemini API call failed: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.error("Gemini API unreachable: %s", exc)
            raise ModelUnavailableError(f"Gemini API unreachable: {exc}") from exc

        return response.text or ""


def build_text_generator(settings: Settings) -> TextGenerator:
    """Create the backend selected by ``settings.model_backend``."""
    if settings.model_backend == "gemini":
        logger.info("Using Gemini backend (model=%s)", settings.model_name)
        return GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.model_name,
            base_url=settings.model_endpoint,
        )
    logger.info(
        "Using Ollama backend at %s (model=%s)", settings.model_endpoint, settings.model_name
    )
    return OllamaClient(endpoint=settings.model_endpoint, model=settings.model_name)
