# Text Query Console
# File: dispatcher.py
# Version: v2

"""Request lifecycle for query submissions.

State machine::

    IDLE --submit(blank)----> IDLE        (no-op)
    IDLE --submit(text)-----> IN_FLIGHT
    IN_FLIGHT --resolve(ok)--> IDLE        result + success status
    IN_FLIGHT --resolve(err)-> IDLE        error + error status

Only one request may be in flight. The flag is raised before the first
``await`` and lowered after resolution, so on a single event loop a second
submission can never slip in between.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Protocol

from . import interpreter, status
from .errors import QueryInFlightError
from .models import RequestState, SessionState

logger = logging.getLogger(__name__)


class QueryBackend(Protocol):
    async def run_query(self, query: str) -> Any: ...


class QueryDispatcher:
    """Owns the session state and drives one request at a time."""

    def __init__(
        self,
        client: QueryBackend,
        *,
        clock: Callable[[], float] = time.perf_counter,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ) -> None:
        self.client = client
        self._clock = clock
        self.on_change = on_change
        self._session = SessionState()

    @property
    def session(self) -> SessionState:
        return self._session

    @property
    def in_flight(self) -> bool:
        return self._session.in_flight

    @property
    def can_submit(self) -> bool:
        """False while a request is running; submit controls key off this."""
        return not self.in_flight

    def _publish(self, session: SessionState) -> None:
        self._session = session
        if self.on_change is None:
            return
        try:
            self.on_change(session)
        except Exception:
            # Observers must not be able to wedge the session in flight.
            logger.exception("Session observer failed on %s.", session.state.value)

    def _elapsed_ms(self, started: float) -> int:
        return round((self._clock() - started) * 1000)

    async def submit(self, query: str) -> SessionState:
        """Submit one query and return the resulting session.

        Blank input returns the current session untouched. Raises
        QueryInFlightError if a request is already running; every other
        failure ends up in the returned session's ``error``.
        """
        text = (query or "").strip()
        if not text:
            logger.debug("Ignoring blank query.")
            return self._session

        if self.in_flight:
            raise QueryInFlightError("A query is already running; wait for it to finish.")

        started = self._clock()
        self._publish(SessionState(state=RequestState.IN_FLIGHT))
        logger.info("Submitting query (%d chars).", len(text))

        try:
            final = await self._dispatch(text, started)
            self._publish(final)
        finally:
            if self.in_flight:
                # Cancelled mid-request: never leave submission disabled.
                logger.warning("Query was cancelled before it resolved.")
                self._publish(SessionState())

        return final

    async def _dispatch(self, text: str, started: float) -> SessionState:
        try:
            payload = await self.client.run_query(text)
            result = interpreter.normalize(payload)
        except Exception as exc:
            elapsed_ms = self._elapsed_ms(started)
            message = str(exc) or exc.__class__.__name__
            logger.warning("Query failed after %sms: %s", elapsed_ms, message)
            return SessionState(
                status=status.compose(RequestState.FAILED, elapsed_ms),
                error=message,
                elapsed_ms=elapsed_ms,
            )

        # Server-measured time is authoritative on success.
        elapsed = result.time_taken
        if elapsed is None:
            elapsed = self._elapsed_ms(started)
            logger.warning("Query response carried no time_taken; using client timing.")

        logger.info("Query finished in %sms.", elapsed)
        return SessionState(
            status=status.compose(RequestState.COMPLETED, elapsed, result.row_count),
            result=result,
            elapsed_ms=elapsed,
        )

