# Text Query Console
# File: tools/tasks.py
# Version: v3
#
# NOTE: This module is the single place where console operations are exposed
# as plain async tasks and as MCP tools. The transports simply call
# `register_tools(server)` to wire these up.

from __future__ import annotations

import copy
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..client import QueryClient
from ..config import ConsoleConfig
from ..dispatcher import QueryDispatcher
from ..errors import BackendError, QueryInFlightError
from ..models import OpaqueResult, SessionState
from ..renderer import render

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers (error shape, mock client, session payloads)
# ---------------------------------------------------------------------------


def _make_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Small, LLM-friendly error shape."""
    err: Dict[str, Any] = {"code": code, "message": message}
    if details:
        err["details"] = details
    return err


class MockQueryClient:
    """Small in-memory stand-in for QueryClient.

    Activated when QUERY_CONSOLE_MOCK_MODE is truthy. Answers a fixed set of
    queries so the console can be tried without a running query service.
    """

    def __init__(self, config: Optional[ConsoleConfig] = None) -> None:
        self._config = config
        self.calls: List[str] = []

        self._responses: Dict[str, Dict[str, Any]] = {
            "?[name, age] := *users[name, age]": {
                "headers": ["name", "age"],
                "rows": [
                    ["alice", 34],
                    ["bob", 27],
                    ["charlie", 41],
                ],
                "time_taken": 3,
            },
            "::relations": {
                "rows": [
                    ["users", 2, "normal"],
                    ["posts", 4, "normal"],
                ],
                "time_taken": 1,
            },
            ":put users {name: 'dave', age: 52}": {
                "affected": 1,
                "time_taken": 2,
            },
        }

    @property
    def known_queries(self) -> List[str]:
        return list(self._responses)

    async def ping(self) -> bool:
        return True

    async def run_query(self, query: str) -> Dict[str, Any]:
        self.calls.append(query)
        payload = self._responses.get(query)
        if payload is None:
            raise BackendError(f"Unknown mock query: {query}", status_code=400)
        return copy.deepcopy(payload)


def _make_client(cfg: Optional[ConsoleConfig] = None) -> QueryClient:
    """Create a QueryClient from environment variables.

    If QUERY_CONSOLE_MOCK_MODE is truthy, the in-process mock client is
    returned instead of a real HTTP client.
    """
    cfg = cfg or ConsoleConfig.from_env()

    if cfg.mock_mode:
        return MockQueryClient(config=cfg)  # type: ignore[return-value]

    return QueryClient(config=cfg)


def make_dispatcher(cfg: Optional[ConsoleConfig] = None, **kwargs: Any) -> QueryDispatcher:
    """Build a dispatcher around the configured (or mock) client."""
    return QueryDispatcher(_make_client(cfg), **kwargs)


_DISPATCHER: QueryDispatcher | None = None


def _get_dispatcher() -> QueryDispatcher:
    """Lazily create the session shared by all MCP tool calls."""
    global _DISPATCHER

    if _DISPATCHER is None:
        _DISPATCHER = QueryDispatcher(_make_client())
    return _DISPATCHER


def reset_session() -> None:
    """Forget the shared session (next call builds a fresh client)."""
    global _DISPATCHER
    _DISPATCHER = None


def session_payload(session: SessionState) -> Dict[str, Any]:
    """JSON-serialisable view of a session, including its render plan."""
    out: Dict[str, Any] = {
        "state": session.state.value,
        "status": None,
        "error": session.error,
        "result": None,
    }

    if session.status is not None:
        out["status"] = {
            "message": session.status.message,
            "severity": session.status.severity.value,
        }

    if session.result is not None:
        result = session.result
        out["result"] = {
            "kind": "opaque" if isinstance(result, OpaqueResult) else "tabular",
            "data": result.as_dict(),
            "display": render(result).as_dict(),
        }

    return out


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def ping() -> Dict[str, Any]:
    client = _make_client()
    ok = await client.ping()
    return {"ok": bool(ok)}


async def submit_query(query: str) -> Dict[str, Any]:
    """Submit a query on the shared session and return the new session."""
    dispatcher = _get_dispatcher()
    try:
        session = await dispatcher.submit(query)
    except QueryInFlightError as exc:
        return {
            "ok": False,
            "error": _make_error("QUERY_IN_FLIGHT", str(exc)),
            "session": session_payload(dispatcher.session),
        }

    return {"ok": session.error is None, "session": session_payload(session)}


async def get_session() -> Dict[str, Any]:
    dispatcher = _get_dispatcher()
    return {"can_submit": dispatcher.can_submit, "session": session_payload(dispatcher.session)}


def _collect_config_info() -> Dict[str, Any]:
    cfg = ConsoleConfig.from_env()

    host = None
    if cfg.backend_url:
        try:
            host = urlparse(cfg.backend_url).hostname
        except ValueError:
            host = None

    return {
        "backend_url": cfg.backend_url,
        "host": host,
        "query_url": cfg.query_url,
        "mock_mode": cfg.mock_mode,
        "verify_tls": cfg.verify_tls,
        "timeout_seconds": cfg.timeout_seconds,
    }


async def diagnostics() -> Dict[str, Any]:
    started = time.time()
    config_info = _collect_config_info()

    checks: List[Dict[str, Any]] = []
    overall_ok = True

    # Client init
    t0 = time.time()
    client = _make_client()
    checks.append(
        {"name": "client_init", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)}
    )

    # Ping
    t0 = time.time()
    try:
        ok_ping = await client.ping()
        if ok_ping:
            checks.append({"name": "ping", "ok": True, "error": None, "elapsed_ms": int((time.time() - t0) * 1000)})
        else:
            overall_ok = False
            checks.append(
                {
                    "name": "ping",
                    "ok": False,
                    "error": _make_error("CONFIG_ERROR", "No query endpoint configured (QUERY_CONSOLE_BACKEND_URL)."),
                    "elapsed_ms": int((time.time() - t0) * 1000),
                }
            )
    except Exception as exc:
        overall_ok = False
        checks.append(
            {
                "name": "ping",
                "ok": False,
                "error": _make_error("BACKEND_ERROR", str(exc)),
                "elapsed_ms": int((time.time() - t0) * 1000),
            }
        )

    session = _DISPATCHER.session if _DISPATCHER is not None else None

    return {
        "ok": overall_ok,
        "mock_mode": config_info["mock_mode"],
        "config": config_info,
        "checks": checks,
        "meta": {
            "elapsed_ms": int((time.time() - started) * 1000),
            "session_state": session.state.value if session is not None else None,
        },
    }


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance."""
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(name="query_ping", description="Check that a query endpoint is configured.")
    async def mcp_ping() -> Dict[str, Any]:
        return await ping()

    @server.tool(
        name="query_submit",
        description=(
            "Submit a free-text query to the backend query service. Returns the status line, "
            "the error text or the result with its grid/raw display plan."
        ),
    )
    async def mcp_submit_query(query: str) -> Dict[str, Any]:
        return await submit_query(query=query)

    @server.tool(name="query_session", description="Show the current session: state, status, error and result.")
    async def mcp_get_session() -> Dict[str, Any]:
        return await get_session()

    @server.tool(name="query_diagnostics", description="Report configuration and basic health checks.")
    async def mcp_diagnostics() -> Dict[str, Any]:
        return await diagnostics()
