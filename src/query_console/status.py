# Text Query Console
# File: status.py
# Version: v1

"""Status line shown after each request."""

from __future__ import annotations

from typing import Any, Optional

from .models import RequestState, Severity, StatusLine


def format_ms(value: Any) -> str:
    """Render a millisecond figure; 42.0 prints as 42."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def compose(
    outcome: Optional[RequestState],
    elapsed_ms: Any,
    row_count: Optional[int] = None,
) -> Optional[StatusLine]:
    """Build the status line for a resolved request.

    ``outcome`` is COMPLETED or FAILED. None means nothing was submitted
    yet, in which case there is no status line at all.
    """
    if outcome is None:
        return None

    ms = format_ms(elapsed_ms)

    if outcome is RequestState.FAILED:
        return StatusLine(message=f"finished in {ms}ms", severity=Severity.ERROR)

    if outcome is not RequestState.COMPLETED:
        raise ValueError(f"Cannot compose a status line for a {outcome.value} request.")

    if row_count is not None:
        return StatusLine(message=f"finished {row_count} rows in {ms}ms", severity=Severity.SUCCESS)
    return StatusLine(message=f"finished in {ms}ms", severity=Severity.SUCCESS)


def severity_of(status: Optional[StatusLine]) -> Severity:
    return status.severity if status is not None else Severity.NONE
