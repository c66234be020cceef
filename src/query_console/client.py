# Text Query Console
# File: client.py
# Version: v2
"""HTTP client for the backend text-query endpoint.

One request per query: the trimmed query text is POSTed as the raw body and
the service answers with a JSON result or a non-success status carrying a
plain-text error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from httpx import RequestError

from .config import ConsoleConfig
from .errors import BackendError, BackendUnavailableError, ConfigError, MalformedPayloadError

logger = logging.getLogger(__name__)


@dataclass
class QueryClient:
    """Wrapper around the query service's text-query endpoint."""

    config: ConsoleConfig

    # Optional transport override (tests use httpx.MockTransport).
    transport: Optional[httpx.AsyncBaseTransport] = None

    async def ping(self) -> bool:
        """Lightweight health check.

        Only checks that an endpoint is configured; the service has no
        dedicated health route.
        """
        return bool(self.config.query_url)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=float(self.config.timeout_seconds),
            verify=self.config.verify_tls,
            transport=self.transport,
        )

    async def run_query(self, query: str) -> Any:
        """Send one query and return the decoded JSON payload.

        Raises:
            ConfigError: no backend URL configured.
            BackendUnavailableError: the request never got a response.
            BackendError: non-success status; message is the body verbatim.
            MalformedPayloadError: success status with an undecodable body.
        """
        url = self.config.query_url
        if not url:
            raise ConfigError(
                "QUERY_CONSOLE_BACKEND_URL is not set. "
                "Please configure it (or pass --url) before submitting queries."
            )

        headers = {
            "Content-Type": "text/plain; charset=utf-8",
            "Accept": "application/json",
        }

        async with self._http_client() as http_client:
            try:
                response = await http_client.post(
                    url, content=query.encode("utf-8"), headers=headers
                )
            except RequestError as exc:
                raise BackendUnavailableError(
                    f"Error calling query endpoint at '{url}': {exc}"
                ) from exc

        if not response.is_success:
            logger.info("Query endpoint answered HTTP %s.", response.status_code)
            raise BackendError(response.text, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError(
                f"Could not decode query response from '{url}': {exc}"
            ) from exc
