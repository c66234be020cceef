# Text Query Console
# File: config.py
# Version: v2

"""Configuration loading for the Text Query Console."""

from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_QUERY_PATH = "/text-query"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_str_env(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass
class ConsoleConfig:
    """Settings for talking to the query service and drawing results."""

    backend_url: str | None
    query_path: str = DEFAULT_QUERY_PATH
    mock_mode: bool = False
    verify_tls: bool = True

    # Transport timeout; a timeout surfaces as an ordinary failed query.
    timeout_seconds: int = 60

    # Terminal grids only; the result itself is never truncated.
    max_display_rows: int = 200

    log_level: str = "WARNING"

    @property
    def query_url(self) -> str | None:
        """Full URL of the query endpoint, or None when no backend is set."""
        if not self.backend_url:
            return None
        path = self.query_path or DEFAULT_QUERY_PATH
        if not path.startswith("/"):
            path = "/" + path
        return self.backend_url.rstrip("/") + path

    @classmethod
    def from_env(cls) -> "ConsoleConfig":
        """Create configuration from environment variables."""
        backend_url = _parse_str_env("QUERY_CONSOLE_BACKEND_URL")
        query_path = _parse_str_env("QUERY_CONSOLE_QUERY_PATH", DEFAULT_QUERY_PATH)

        mock_mode = _parse_bool_env("QUERY_CONSOLE_MOCK_MODE", default=False)
        verify_tls = _parse_bool_env("QUERY_CONSOLE_VERIFY_TLS", default=True)

        timeout_seconds = _parse_int_env(
            "QUERY_CONSOLE_TIMEOUT_SECONDS", default=60, min_value=1, max_value=3600
        )
        max_display_rows = _parse_int_env(
            "QUERY_CONSOLE_MAX_DISPLAY_ROWS", default=200, min_value=1, max_value=100000
        )

        log_level = (_parse_str_env("QUERY_CONSOLE_LOG_LEVEL", "WARNING") or "WARNING").upper()
        if log_level not in LOG_LEVELS:
            log_level = "WARNING"

        return cls(
            backend_url=backend_url,
            query_path=query_path or DEFAULT_QUERY_PATH,
            mock_mode=mock_mode,
            verify_tls=verify_tls,
            timeout_seconds=timeout_seconds,
            max_display_rows=max_display_rows,
            log_level=log_level,
        )
