"""Configuration loading for voice-cal.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_DEFAULT_TIMEOUT = 30.0


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        backend_base_url: Base URL of the extraction/calendar service,
            without a trailing slash.
        log_level: Logging level (default ``"INFO"``).
        request_timeout: Seconds to wait for each remote call, or ``None``
            to wait indefinitely (default ``30.0``).
    """

    backend_base_url: str
    log_level: str = "INFO"
    request_timeout: float | None = _DEFAULT_TIMEOUT


def load_settings(base_url: str | None = None) -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Args:
        base_url: Backend URL that takes precedence over
            ``BACKEND_BASE_URL``, which then becomes optional.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If ``BACKEND_BASE_URL`` (or *base_url*, when given) is
            missing, empty, or whitespace-only, or if ``REQUEST_TIMEOUT`` is not a
            non-negative number.
    """
    load_dotenv()

    required = {
        "BACKEND_BASE_URL": "backend_base_url",
    }

    values: dict[str, object] = {}
    missing: list[str] = []

    if base_url is not None:
        if not base_url.strip().rstrip("/"):
            raise ConfigError("Backend base URL must not be empty")
        values["backend_base_url"] = base_url.strip()
        required.pop("BACKEND_BASE_URL")

    for env_var, field_name in required.items():
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            missing.append(env_var)
        else:
            values[field_name] = raw.strip()

    if missing:
        names = ", ".join(missing)
        raise ConfigError(f"Missing required environment variables: {names}")

    values["backend_base_url"] = str(values["backend_base_url"]).rstrip("/")

    # Optional settings with defaults handled by the dataclass.
    log_level = os.environ.get("LOG_LEVEL", "").strip()
    timeout = os.environ.get("REQUEST_TIMEOUT", "").strip()

    if log_level:
        values["log_level"] = log_level
    if timeout:
        values["request_timeout"] = parse_timeout(timeout)

    return Settings(**values)  # type: ignore[arg-type]


def parse_timeout(raw: str) -> float | None:
    """Parse a ``REQUEST_TIMEOUT`` value.

    ``0`` means "no timeout" and maps to ``None``.

    Raises:
        ConfigError: If *raw* is not a non-negative number.
    """
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise ConfigError(f"REQUEST_TIMEOUT must be a number, got {raw!r}") from exc
    if seconds < 0:
        raise ConfigError(f"REQUEST_TIMEOUT must not be negative, got {raw!r}")
    return seconds or None
