# Text Query Console
# File: interpreter.py
# Version: v1

"""Turn raw backend payloads into normalized results.

The backend may or may not include ``rows`` and ``headers``. This module
settles the shape once, so nothing downstream has to sniff for optional
fields:

- no ``rows``: an :class:`OpaqueResult` holding the payload for a raw dump
- ``rows`` present: a :class:`TabularResult`; missing headers are
  synthesized as ``?0``, ``?1``, ... from the width of the first row
"""

from __future__ import annotations

from typing import Any, Dict, List

from .errors import MalformedPayloadError
from .models import NormalizedResult, OpaqueResult, TabularResult

# Marks a header the console made up; stripped again for display.
SYNTHETIC_HEADER_PREFIX = "?"

_RESERVED_KEYS = {"rows", "headers", "time_taken"}


def synthesize_headers(width: int) -> List[str]:
    """Return ``["?0", ..., "?(width-1)"]``."""
    return [f"{SYNTHETIC_HEADER_PREFIX}{i}" for i in range(max(int(width), 0))]


def normalize(payload: Any) -> NormalizedResult:
    """Classify and normalize a decoded success payload.

    The input is never mutated. Raises MalformedPayloadError when the payload
    is not an object, or when ``rows`` / ``headers`` have the wrong shape.
    """
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            f"Unexpected query response: expected JSON object, got {type(payload).__name__}."
        )

    time_taken = payload.get("time_taken")
    raw_rows = payload.get("rows")

    if raw_rows is None:
        return OpaqueResult(payload=dict(payload), time_taken=time_taken)

    if not isinstance(raw_rows, list) or not all(isinstance(r, list) for r in raw_rows):
        raise MalformedPayloadError("Unexpected query response: 'rows' must be a list of lists.")

    rows = [list(r) for r in raw_rows]

    raw_headers = payload.get("headers")
    if raw_headers is None:
        headers = synthesize_headers(len(rows[0]) if rows else 0)
    elif isinstance(raw_headers, list):
        headers = [str(h) for h in raw_headers]
    else:
        raise MalformedPayloadError("Unexpected query response: 'headers' must be a list.")

    extras: Dict[str, Any] = {k: v for k, v in payload.items() if k not in _RESERVED_KEYS}

    return TabularResult(headers=headers, rows=rows, time_taken=time_taken, extras=extras)
