# demo_submit_query.py
# Version: v1

r"""
Demo: call the task `submit_query` and print the resulting session.

Usage:

  export QUERY_CONSOLE_BACKEND_URL="http://127.0.0.1:9070"
  python demo_submit_query.py

  # Override the query:
  export QUERY_CONSOLE_TEST_QUERY="?[a, b] <- [[1, 2], [3, 4]]"
  python demo_submit_query.py

  # Without a running service:
  export QUERY_CONSOLE_MOCK_MODE=1
  export QUERY_CONSOLE_TEST_QUERY="::relations"
  python demo_submit_query.py
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Dict

from query_console.tools.tasks import submit_query


QUERY = os.environ.get("QUERY_CONSOLE_TEST_QUERY", "?[a, b] <- [[1, 2], [3, 4]]")


async def main() -> None:
    print("Calling task: submit_query()")
    print(f"Query: {QUERY!r}")

    out: Dict[str, Any] = await submit_query(QUERY)
    session: Dict[str, Any] = out.get("session", {}) or {}

    status = session.get("status") or {}
    print("\nStatus:", status.get("message"), f"({status.get('severity')})")

    if session.get("error"):
        print("\nError:")
        print(session["error"])
        return

    result = session.get("result") or {}
    display = result.get("display") or {}
    if display.get("kind") == "tabular":
        data = result.get("data") or {}
        print("\nColumns:", display.get("columns"))
        print("Rows returned:", display.get("row_count"))
        for i, row in enumerate(data.get("rows", [])[:10], start=1):
            print(f"  Row {i}:", row)
    else:
        print("\nResult:")
        print(display.get("text"))


if __name__ == "__main__":
    asyncio.run(main())
