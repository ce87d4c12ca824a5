"""Request execution components.

Modules:
    base: Transport protocol and the httpx-backed default transport
    retry: Retry eligibility and exponential backoff with jitter
    connectivity: Connectivity probe loop and status broadcast
    executor: Orchestrates refresh, transport, recovery and retry for one call

Example:
    ```python
    from resilient_http_core.transport.base import HttpxTransport
    from resilient_http_core.transport.executor import RequestExecutor

    executor = RequestExecutor(config, HttpxTransport())
    response = await executor.execute("GET", "https://api.example.com/users")
    ```
"""

__all__ = []
