"""Resilient HTTP client.

``ResilientClient`` shapes arguments (URL, body encoding) and hands every
call to a ``RequestExecutor``. All verbs share one token refresh coordinator
and one connectivity monitor.

Example:
    ```python
    async with ResilientClient(config) as client:
        response = await client.post("/orders", body={"sku": "A-1"})
    ```
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from resilient_http_core.auth.refresh import TokenRefreshCoordinator
from resilient_http_core.config import ClientConfiguration
from resilient_http_core.transport.base import HttpxTransport, Transport
from resilient_http_core.transport.connectivity import ConnectivityMonitor, ConnectivityStatusChannel
from resilient_http_core.transport.executor import RequestExecutor

logger = logging.getLogger(__name__)


class ResilientClient:
    """HTTP client with token refresh, retry and connectivity recovery.

    Args:
        config: Client configuration; its header map is shared by all calls
        transport: Single-attempt transport. A transport passed in is not closed
            by ``aclose``; the default HttpxTransport is.
        sleep: Coroutine used for backoff and probe waits
    """

    def __init__(
        self,
        config: ClientConfiguration,
        *,
        transport: Transport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self._sleep = sleep
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport()
        self.coordinator = TokenRefreshCoordinator()
        self.monitor = ConnectivityMonitor(check=config.connectivity_check, sleep=sleep)
        self.executor = RequestExecutor(
            config,
            self.transport,
            coordinator=self.coordinator,
            monitor=self.monitor,
            sleep=sleep,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self.transport.aclose()

    @property
    def status(self) -> ConnectivityStatusChannel:
        """Connectivity status broadcast (``False`` on loss, ``True`` on recovery)."""
        return self.monitor.status

    def copy_with(self, config: ClientConfiguration | None = None) -> "ResilientClient":
        """Return a client that borrows this client's transport.

        The copy gets its own refresh coordinator and connectivity monitor, so
        it also gets its own header map: without ``config`` (or when handed
        this client's own configuration) it works on a clone. Closing the
        copy leaves the transport open.
        """
        if config is None or config is self.config:
            config = self.config.clone()
        return ResilientClient(config, transport=self.transport, sleep=self._sleep)

    async def has_internet_connection(self) -> bool:
        return await self.monitor.check()

    def build_url(self, path: str) -> str:
        """Join ``path`` onto the base URL. Absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def encode_body(self, body: Any, json_encode_body: bool = True) -> tuple[bytes | None, dict[str, str]]:
        """Encode a request body once so that retries replay identical bytes.

        Returns:
            Tuple of (encoded body, headers for this call only)
        """
        if body is None:
            return None, {}
        if isinstance(body, bytes):
            return body, {}
        if json_encode_body:
            extra = {} if self.config.has_header("Content-Type") else {"Content-Type": "application/json"}
            return json.dumps(body).encode(self.config.encoding), extra
        if isinstance(body, str):
            return body.encode(self.config.encoding), {}
        raise TypeError(f"Cannot send body of type {type(body).__name__} without JSON encoding")

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        json_encode_body: bool = True,
        headers: dict[str, str] | None = None,
        retry_count: int | None = None,
    ) -> httpx.Response:
        """Send a request through the resilience pipeline.

        Args:
            method: HTTP verb
            path: Path relative to ``config.base_url``, or an absolute URL
            body: bytes are sent as-is; anything else is JSON-encoded unless
                ``json_encode_body`` is False, in which case str is encoded
                with ``config.encoding``
            json_encode_body: JSON-encode non-bytes bodies (default: True)
            headers: Extra headers for this call only
            retry_count: Override the configured retry budget

        Returns:
            The final response, whatever its status code
        """
        url = self.build_url(path)
        content, body_headers = self.encode_body(body, json_encode_body)
        call_headers = {**body_headers, **(headers or {})}

        logger.debug(f"{method} {url}")
        return await self.executor.execute(
            method,
            url,
            content,
            retry_count=retry_count,
            headers=call_headers or None,
        )

    async def get(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)
