"""Shared fixtures for voice-cal tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required environment variables to valid defaults.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("voice_cal.config.load_dotenv", lambda *_a, **_kw: None)
    env_vars = {
        "BACKEND_BASE_URL": "https://calendar.example.test",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    for key in ("LOG_LEVEL", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all voice-cal-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("voice_cal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in (
        "BACKEND_BASE_URL",
        "LOG_LEVEL",
        "REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
