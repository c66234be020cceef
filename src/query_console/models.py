# Text Query Console
# File: models.py
# Version: v2

"""Domain models used by the Text Query Console."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class RequestState(str, Enum):
    """Lifecycle of a query request.

    A session only rests in IDLE or IN_FLIGHT. COMPLETED and FAILED name how
    an in-flight request resolved; they are the outcome handed to the status
    reporter, not states the session stays in.
    """

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


class Severity(str, Enum):
    NONE = "none"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusLine:
    """One-line summary of the last request."""

    message: str
    severity: Severity


@dataclass(frozen=True)
class TabularResult:
    """A result carrying rows, with headers given or synthesized."""

    headers: List[str]
    rows: List[List[Any]]
    time_taken: Any = None

    # Any other top-level fields the backend sent alongside the rows.
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extras)
        out["headers"] = list(self.headers)
        out["rows"] = [list(r) for r in self.rows]
        out["time_taken"] = self.time_taken
        return out


@dataclass(frozen=True)
class OpaqueResult:
    """A result without rows, e.g. a write or command acknowledgement."""

    payload: Dict[str, Any]
    time_taken: Any = None

    @property
    def row_count(self) -> Optional[int]:
        return None

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.payload)


NormalizedResult = Union[TabularResult, OpaqueResult]


@dataclass(frozen=True)
class SessionState:
    """Everything the display surface needs about the current session.

    Instances are immutable; the dispatcher swaps in a new one on every
    transition so status, error and result always belong to the same
    submission.
    """

    state: RequestState = RequestState.IDLE
    status: Optional[StatusLine] = None
    error: Optional[str] = None
    result: Optional[NormalizedResult] = None
    elapsed_ms: Any = None

    @property
    def in_flight(self) -> bool:
        return self.state is RequestState.IN_FLIGHT
