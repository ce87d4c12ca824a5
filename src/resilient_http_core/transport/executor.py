"""End-to-end execution of one logical call.

Each attempt runs the same steps:

1. make sure the token is not known to be expired (single-flight refresh)
2. send the request once, bounded by the configured timeout
3. on a connectivity-class failure, run the connectivity probe loop
4. ask the retry policy whether to go again, sleep, repeat

The loop ends on a non-retryable outcome or when the budget is spent. The
last response is returned as-is, even if its status is retryable; if no
response was ever obtained the last exception is raised.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from resilient_http_core.auth.refresh import TokenRefreshCoordinator
from resilient_http_core.config import ClientConfiguration
from resilient_http_core.errors.exceptions import RefreshError, TransportError
from resilient_http_core.errors.handler import is_connectivity_loss
from resilient_http_core.transport.base import Transport
from resilient_http_core.transport.connectivity import ConnectivityMonitor
from resilient_http_core.transport.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass
class RetryContext:
    """Per-call retry bookkeeping."""

    remaining: int
    attempt: int = 0
    last_response: httpx.Response | None = None
    last_exception: BaseException | None = None

    def record(self, outcome: httpx.Response | BaseException) -> None:
        if isinstance(outcome, httpx.Response):
            self.last_response = outcome
            self.last_exception = None
        else:
            self.last_response = None
            self.last_exception = outcome


class RequestExecutor:
    """Runs calls through refresh, transport, connectivity recovery and retry.

    Args:
        config: Client configuration (headers are re-read on every attempt)
        transport: Sends a single request
        coordinator: Token refresh guard shared by every call of this client
        monitor: Connectivity probe loop
        policy: Retry policy (built from ``config`` if omitted)
        sleep: Coroutine used for backoff waits
    """

    def __init__(
        self,
        config: ClientConfiguration,
        transport: Transport,
        *,
        coordinator: TokenRefreshCoordinator | None = None,
        monitor: ConnectivityMonitor | None = None,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.transport = transport
        self.coordinator = coordinator or TokenRefreshCoordinator()
        self.monitor = monitor or ConnectivityMonitor(check=config.connectivity_check, sleep=sleep)
        self.policy = policy or RetryPolicy(
            max_delay_ms=config.max_delay_ms,
            retry_status_codes=config.retry_status_codes,
            random=config.random,
        )
        self._sleep = sleep

    async def execute(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        retry_count: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute one logical call.

        Args:
            method: HTTP verb
            url: Absolute request URL
            body: Encoded body, replayed unchanged on every attempt
            retry_count: Retry budget for this call (default: config.max_retry_attempts)
            headers: Extra headers for this call only

        Returns:
            The last response obtained

        Raises:
            ConnectivityExhausted: Connectivity did not come back
            RefreshError: Token refresh failed and no retry budget was left
            TransportError: No response was obtained on the final attempt
        """
        budget = self.config.max_retry_attempts if retry_count is None else retry_count
        if not self.config.retry_api_call:
            budget = 0
        ctx = RetryContext(remaining=budget)

        while True:
            await self._ensure_token(ctx)
            outcome = await self._attempt(method, url, body, headers)

            if isinstance(outcome, BaseException) and is_connectivity_loss(outcome):
                # ConnectivityExhausted propagates and ends the call.
                await self.monitor.recover()

            ctx.record(outcome)

            if not self.policy.should_retry(outcome, ctx.remaining):
                break

            delay = self.policy.delay_for(ctx.attempt)
            ctx.attempt += 1
            ctx.remaining -= 1
            reason = outcome.status_code if isinstance(outcome, httpx.Response) else type(outcome).__name__
            logger.warning(
                f"Request {method} {url} failed with {reason}, "
                f"retrying in {delay}s ({ctx.remaining} retries left)"
            )
            await self._sleep(delay)

        if ctx.last_response is not None:
            logger.debug(f"Request {method} {url} finished with {ctx.last_response.status_code}")
            return ctx.last_response
        raise ctx.last_exception

    async def _ensure_token(self, ctx: RetryContext) -> None:
        try:
            await self.coordinator.ensure_valid(self.config)
        except RefreshError as e:
            if ctx.remaining <= 0:
                raise
            logger.warning(f"Token refresh failed ({e}), sending request with the current token")

    async def _attempt(
        self,
        method: str,
        url: str,
        body: bytes | None,
        extra_headers: dict[str, str] | None,
    ) -> httpx.Response | Exception:
        headers = dict(self.config.headers)
        if extra_headers:
            headers.update(extra_headers)

        timeout = self.config.timeout
        try:
            return await asyncio.wait_for(
                self.transport.send(method, url, headers=headers, content=body, timeout=timeout),
                timeout=timeout,
            )
        except TimeoutError as e:
            error = TransportError(
                f"{method} {url} got no response within {timeout}s", method=method, url=url, timed_out=True
            )
            error.__cause__ = e
            return error
        except Exception as e:
            logger.debug(f"Request {method} {url} raised {type(e).__name__}: {e}")
            return e
