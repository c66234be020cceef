# Text Query Console
# File: renderer.py
# Version: v1

"""Decide how a normalized result is presented."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Union

from .interpreter import SYNTHETIC_HEADER_PREFIX
from .models import NormalizedResult, TabularResult


@dataclass(frozen=True)
class Column:
    index: int
    name: str
    display_name: str


@dataclass(frozen=True)
class TabularPlan:
    """Grid presentation: column definitions plus a cell accessor."""

    columns: List[Column]
    rows: Sequence[Sequence[Any]]

    kind = "tabular"

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def cell(self, row: int, col: int) -> Any:
        """Return ``rows[row][col]``; short (ragged) rows read as None."""
        values = self.rows[row]
        if col >= len(values):
            return None
        return values[col]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "columns": [c.display_name for c in self.columns],
            "row_count": self.row_count,
        }


@dataclass(frozen=True)
class RawPlan:
    """Pretty-printed JSON dump of a result that has no grid shape."""

    text: str

    kind = "raw"

    def as_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text}


RenderPlan = Union[TabularPlan, RawPlan]


def display_name(header: str) -> str:
    """Strip the synthesized-header marker for display."""
    if header.startswith(SYNTHETIC_HEADER_PREFIX):
        return header[len(SYNTHETIC_HEADER_PREFIX):]
    return header


def render(result: NormalizedResult) -> RenderPlan:
    if isinstance(result, TabularResult):
        columns = [
            Column(index=i, name=h, display_name=display_name(h))
            for i, h in enumerate(result.headers)
        ]
        return TabularPlan(columns=columns, rows=result.rows)

    return RawPlan(text=json.dumps(result.as_dict(), indent=2, ensure_ascii=False, default=str))
