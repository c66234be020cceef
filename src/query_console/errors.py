# Text Query Console
# File: errors.py
# Version: v1

"""Exceptions raised while submitting queries.

Everything a started request can raise is converted into the session's
status and error fields by the dispatcher. ``QueryInFlightError`` is the
exception: it rejects a submission before any request starts.
"""

from __future__ import annotations

from typing import Optional


class QueryConsoleError(RuntimeError):
    """Base class for all console errors."""


class ConfigError(QueryConsoleError):
    """Required configuration is missing."""


class BackendUnavailableError(QueryConsoleError):
    """The query endpoint could not be reached (DNS, refused, timeout...)."""


class BackendError(QueryConsoleError):
    """The query service answered with a non-success status.

    ``str(exc)`` is the response body verbatim, so it can be shown to the
    operator as-is.
    """

    def __init__(self, body: str, status_code: Optional[int] = None) -> None:
        super().__init__(body)
        self.body = body
        self.status_code = status_code


class MalformedPayloadError(QueryConsoleError):
    """A success response whose body is not a usable result payload."""


class QueryInFlightError(QueryConsoleError):
    """A submission was attempted while another request is still running."""
