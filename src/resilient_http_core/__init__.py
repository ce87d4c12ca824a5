"""Resilient HTTP Core - request execution pipeline for async HTTP clients.

This library adds resilience on top of a plain transport:
- Single-flight authorization token refresh shared by concurrent callers
- Retry with exponential backoff and jitter on transient failures
- Connectivity loss detection with a bounded probe loop and status broadcast

Example:
    ```python
    from resilient_http_core import ClientConfiguration, RefreshSuccess, ResilientClient


    async def refresh():
        return RefreshSuccess(await my_auth.renew())


    config = ClientConfiguration(
        base_url="https://api.example.com",
        headers={"Authorization": f"Bearer {token}"},
        max_retry_attempts=3,
        refresh_token=refresh,
    )

    async with ResilientClient(config) as client:
        response = await client.get("/profile")
    ```
"""

from resilient_http_core.auth.refresh import RefreshFailure, RefreshSuccess, TokenRefreshCoordinator
from resilient_http_core.client import ResilientClient
from resilient_http_core.config import ClientConfiguration
from resilient_http_core.errors.exceptions import (
    ConnectivityExhausted,
    ConnectivityLost,
    PipelineError,
    RefreshError,
    TransportError,
)
from resilient_http_core.transport.connectivity import ConnectivityMonitor, ConnectivityStatusChannel
from resilient_http_core.transport.executor import RequestExecutor
from resilient_http_core.transport.retry import RetryPolicy

__version__ = "0.1.0"

__all__ = [
    "ClientConfiguration",
    "ConnectivityExhausted",
    "ConnectivityLost",
    "ConnectivityMonitor",
    "ConnectivityStatusChannel",
    "PipelineError",
    "RefreshError",
    "RefreshFailure",
    "RefreshSuccess",
    "RequestExecutor",
    "ResilientClient",
    "RetryPolicy",
    "TokenRefreshCoordinator",
    "TransportError",
    "__version__",
]
