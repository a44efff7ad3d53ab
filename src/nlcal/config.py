"""Configuration loading for nlcal.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_BACKENDS = ("ollama", "gemini")


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        model_endpoint: URL of the text-generation endpoint.
        model_name: Model identifier sent with every generation request.
        model_backend: ``"ollama"`` (HTTP generate endpoint) or ``"gemini"``.
        gemini_api_key: API key, only used by the ``gemini`` backend.
        google_client_id: OAuth client id for the Calendar API.
        google_client_secret: OAuth client secret for the Calendar API.
        google_redirect_uri: OAuth callback URL registered with Google.
        token_path: File where the OAuth token is persisted.
        timezone: Default IANA timezone for requests without ``X-Timezone``.
            ``None`` means the host timezone.
        static_dir: Directory served as static files at ``/``.
        port: Port used by ``python -m nlcal serve``.
        log_level: Logging level (default ``"INFO"``).
    """

    model_endpoint: str
    model_name: str
    model_backend: str = "ollama"
    gemini_api_key: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = "http://localhost:3000/auth/google/callback"
    token_path: str = "tokens.json"
    timezone: str | None = None
    static_dir: str = "public"
    port: int = 3000
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Settings(model_endpoint={self.model_endpoint!r}, "
            f"model_name={self.model_name!r}, "
            f"model_backend={self.model_backend!r}, "
            f"gemini_api_key='***', "
            f"google_client_id={self.google_client_id!r}, "
            f"google_client_secret='***', "
            f"google_redirect_uri={self.google_redirect_uri!r}, "
            f"token_path={self.token_path!r}, "
            f"timezone={self.timezone!r}, "
            f"static_dir={self.static_dir!r}, "
            f"port={self.port!r}, "
            f"log_level={self.log_level!r})"
        )


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If any required environment variable is missing,
            empty, or whitespace-only (the message names **all** of them),
            or if an optional value is malformed.
    """
    load_dotenv()

    required = {
        "MODEL_ENDPOINT": "model_endpoint",
        "MODEL_NAME": "model_name",
    }

    values: dict[str, object] = {}
    missing: list[str] = []

    for env_var, field_name in required.items():
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            missing.append(env_var)
        else:
            values[field_name] = raw.strip()

    backend = os.environ.get("MODEL_BACKEND", "").strip().lower() or "ollama"
    if backend not in _BACKENDS:
        raise ConfigError(
            f"Invalid MODEL_BACKEND {backend!r}; expected one of: {', '.join(_BACKENDS)}"
        )
    values["model_backend"] = backend

    gemini_key = os.environ.get("GEMINI_API_KEY", "").strip()
    if backend == "gemini" and not gemini_key:
        missing.append("GEMINI_API_KEY")

    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    # Optional settings with defaults handled by the dataclass.
    optional = {
        "GOOGLE_CLIENT_ID": "google_client_id",
        "GOOGLE_CLIENT_SECRET": "google_client_secret",
        "GOOGLE_REDIRECT_URI": "google_redirect_uri",
        "TOKEN_PATH": "token_path",
        "TIMEZONE": "timezone",
        "STATIC_DIR": "static_dir",
        "LOG_LEVEL": "log_level",
    }
    for env_var, field_name in optional.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    if gemini_key:
        values["gemini_api_key"] = gemini_key

    port = os.environ.get("PORT", "").strip()
    if port:
        try:
            values["port"] = int(port)
        except ValueError as exc:
            raise ConfigError(f"PORT must be an integer, got {port!r}") from exc

    return Settings(**values)  # type: ignore[arg-type]
