# Text Query Console
# File: console.py
# Version: v3

"""Interactive terminal console.

This is the script behind the ``query-console`` console command. Queries are
typed over one or more lines:

- a blank line submits the buffered query
- ``.run`` submits explicitly, ``.clear`` drops the buffer
- ``.quit`` / ``.exit`` (or Ctrl-D / Ctrl-C) leave the console

Input is not read while a query is running, so a second submission cannot
be issued until the first resolves.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, List, Optional

import typer
from rich import box
from rich.console import Console, RenderableType
from rich.json import JSON
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text

from .config import LOG_LEVELS, ConsoleConfig
from .dispatcher import QueryDispatcher
from .models import SessionState, Severity
from .renderer import TabularPlan, render
from .tools import tasks

PROMPT = "[bold cyan]query>[/bold cyan] "
CONTINUATION_PROMPT = "[cyan]  ...>[/cyan] "

RUN_COMMAND = ".run"
CLEAR_COMMAND = ".clear"
QUIT_COMMANDS = {".quit", ".exit"}

SEVERITY_STYLES = {
    Severity.NONE: "",
    Severity.SUCCESS: "bold white on green",
    Severity.ERROR: "bold white on red",
}


def _cell_text(value: Any) -> Text:
    if value is None:
        return Text("null", style="dim")
    if isinstance(value, str):
        return Text(value)
    return Text(json.dumps(value, ensure_ascii=False, default=str))


class QueryConsole:
    """Reads queries from the operator and draws each session."""

    def __init__(
        self,
        dispatcher: QueryDispatcher,
        console: Optional[Console] = None,
        *,
        input_func: Optional[Callable[[str], str]] = None,
        max_display_rows: int = 200,
    ) -> None:
        self.dispatcher = dispatcher
        self.console = console or Console()
        self._input = input_func or self.console.input
        self.max_display_rows = max(int(max_display_rows), 1)
        self.busy: Optional[Status] = None
        dispatcher.on_change = self.on_session_change

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def read_query(self) -> Optional[str]:
        """Collect one query from the operator; None means quit."""
        lines: List[str] = []
        while True:
            line = self._input(CONTINUATION_PROMPT if lines else PROMPT)
            command = line.strip()

            if command in QUIT_COMMANDS:
                return None
            if command == CLEAR_COMMAND:
                lines = []
                continue
            if command == RUN_COMMAND:
                return "\n".join(lines)
            if not command:
                if lines:
                    return "\n".join(lines)
                continue

            lines.append(line)

    async def submit(self, query: str) -> SessionState:
        if not self.dispatcher.can_submit:
            self.console.print("[yellow]A query is already running.[/yellow]")
            return self.dispatcher.session

        before = self.dispatcher.session
        session = await self.dispatcher.submit(query)

        # Blank input leaves the session untouched; nothing new to draw.
        if session is not before:
            self.show(session)
        return session

    def on_session_change(self, session: SessionState) -> None:
        """Show a spinner exactly while a request is in flight."""
        if session.in_flight:
            if self.busy is None:
                self.busy = self.console.status("Running query...", spinner="dots")
                self.busy.start()
            return

        if self.busy is not None:
            self.busy.stop()
            self.busy = None

    async def run(self) -> None:
        self.console.print(
            "[bold]Text Query Console[/bold]  "
            "(blank line or .run to submit, .clear to reset, .quit to leave)"
        )
        while True:
            try:
                text = self.read_query()
            except (EOFError, KeyboardInterrupt):
                self.console.print("\nGoodbye!")
                break

            if text is None:
                self.console.print("Goodbye!")
                break

            await self.submit(text)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def grid(self, plan: TabularPlan) -> Table:
        shown = min(plan.row_count, self.max_display_rows)
        caption = None
        if shown < plan.row_count:
            caption = f"showing {shown} of {plan.row_count} rows"

        table = Table(box=box.SIMPLE_HEAVY, caption=caption, header_style="bold")
        for column in plan.columns:
            table.add_column(Text(column.display_name))

        for row in range(shown):
            table.add_row(*[_cell_text(plan.cell(row, c.index)) for c in plan.columns])
        return table

    def renderables(self, session: SessionState) -> List[RenderableType]:
        out: List[RenderableType] = []

        if session.status is not None:
            style = SEVERITY_STYLES[session.status.severity]
            out.append(Text(f" {session.status.message} ", style=style))

        if session.error:
            out.append(Panel(Text(session.error), title="error", border_style="red", expand=False))

        if session.result is not None:
            plan = render(session.result)
            if isinstance(plan, TabularPlan):
                out.append(self.grid(plan))
            else:
                out.append(JSON(plan.text))

        return out

    def show(self, session: SessionState) -> None:
        for renderable in self.renderables(session):
            self.console.print(renderable)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


app = typer.Typer(add_completion=False, help="Interactive console for a text-query service.")


def _configure_logging(level: str) -> None:
    # stdout belongs to the console; logs go to stderr.
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def main(
    url: Optional[str] = typer.Option(
        None, "--url", help="Base URL of the query service (overrides QUERY_CONSOLE_BACKEND_URL)."
    ),
    mock: bool = typer.Option(False, "--mock", help="Answer queries from the in-memory mock backend."),
    query: Optional[str] = typer.Option(
        None, "--query", "-q", help="Submit a single query, print the outcome and exit."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (default WARNING)."),
) -> None:
    """Type queries, submit them and browse the results."""
    cfg = ConsoleConfig.from_env()
    if url:
        cfg.backend_url = url
    if mock:
        cfg.mock_mode = True
    if log_level:
        if log_level.upper() not in LOG_LEVELS:
            raise typer.BadParameter(f"expected one of {', '.join(LOG_LEVELS)}", param_hint="--log-level")
        cfg.log_level = log_level.upper()

    _configure_logging(cfg.log_level)

    shell = QueryConsole(tasks.make_dispatcher(cfg), Console(), max_display_rows=cfg.max_display_rows)

    if query is not None:
        session = asyncio.run(shell.submit(query))
        if session.error is not None:
            raise typer.Exit(1)
        return

    asyncio.run(shell.run())


if __name__ == "__main__":
    app()
