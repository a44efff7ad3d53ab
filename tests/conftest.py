"""Shared fixtures for nlcal tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

_NLCAL_ENV_VARS = (
    "MODEL_ENDPOINT",
    "MODEL_NAME",
    "MODEL_BACKEND",
    "GEMINI_API_KEY",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REDIRECT_URI",
    "TOKEN_PATH",
    "TIMEZONE",
    "STATIC_DIR",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all nlcal-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("nlcal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _NLCAL_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def monkeypatch_env(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set the required environment variables to valid defaults.

    Returns the dict of variables so tests can inspect or override values.
    """
    env_vars = {
        "MODEL_ENDPOINT": "http://localhost:11434/api/generate",
        "MODEL_NAME": "llama3.2:latest",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
