# Text Query Console
# File: transports/stdio_server.py
# Version: v1

"""STDIO entrypoint for the query console MCP server.

This is the script behind the ``query-console-mcp`` console command.

It:

- creates a FastMCP server,
- registers the query tools (submit, session, ping, diagnostics), and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from ..config import ConsoleConfig
from ..tools import register_all_tools


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    cfg = ConsoleConfig.from_env()

    # stdout carries the MCP protocol; logs go to stderr.
    logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    mcp = FastMCP("query-console")
    register_all_tools(mcp)

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
