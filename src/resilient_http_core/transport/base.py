"""Transport collaborator used by the executor.

A transport sends exactly one HTTP request and reports the outcome; it
never retries. Anything with a matching ``send`` coroutine works. The
default is ``HttpxTransport``, which wraps ``httpx.AsyncClient`` and maps
httpx errors onto the pipeline's taxonomy:

| httpx error | Raised as |
|-------------|-----------|
| `ConnectError` | `ConnectivityLost` |
| `TimeoutException` | `TransportError(timed_out=True)` |
| any other `TransportError` | `TransportError` |

Tests can plug in ``httpx.MockTransport``:

```python
transport = HttpxTransport(transport=httpx.MockTransport(handler))
```
"""

from typing import Protocol

import httpx

from resilient_http_core.errors.exceptions import ConnectivityLost, TransportError


class Transport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        content: bytes | None,
        timeout: float,
    ) -> httpx.Response: ...

    async def aclose(self) -> None: ...


class HttpxTransport:
    """Single-attempt transport backed by ``httpx.AsyncClient``.

    Args:
        client: Existing client to use. It is not closed by ``aclose``.
        transport: httpx transport for a client created here (e.g. MockTransport)
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        content: bytes | None,
        timeout: float,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=headers, content=content, timeout=timeout)
        except httpx.ConnectError as e:
            raise ConnectivityLost(f"{method} {url} could not connect: {e}", method=method, url=url) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"{method} {url} timed out after {timeout}s", method=method, url=url, timed_out=True
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"{method} {url} failed: {e}", method=method, url=url) from e

        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
