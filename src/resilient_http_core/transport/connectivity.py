"""Connectivity loss detection and recovery.

When a transport attempt fails because there is no network path at all
(DNS failure, connect failure), the executor hands control to
``ConnectivityMonitor.recover()``. It broadcasts ``False`` on the status
channel, then probes until the network is back or the probes run out:

    Probing(attempt=0..5) -> Connected | Exhausted

Probe waits grow by 5s up to a 10s ceiling: 5, 10, 10, 10, 10 seconds.

Example:
    ```python
    monitor = ConnectivityMonitor(check=my_vpn_probe)
    unsubscribe = monitor.status.subscribe(lambda up: print("online" if up else "offline"))
    ```
"""

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable

from resilient_http_core.errors.exceptions import ConnectivityExhausted

logger = logging.getLogger(__name__)

DEFAULT_PROBE_HOST = "example.com"

StatusListener = Callable[[bool], None]


async def resolve_well_known_host(host: str = DEFAULT_PROBE_HOST) -> bool:
    """Default connectivity check: True if ``host`` resolves via DNS."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, 443, type=socket.SOCK_STREAM)
    except OSError:
        return False
    return bool(infos)


class ConnectivityStatusChannel:
    """Broadcast of connected/disconnected booleans.

    Listeners are plain callables invoked synchronously on publish. Queue
    subscribers get an unbounded ``asyncio.Queue`` that never blocks the
    publisher.
    """

    def __init__(self) -> None:
        self._listeners: list[StatusListener] = []
        self._queues: list[asyncio.Queue[bool]] = []
        self.last_status: bool | None = None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def listen(self) -> "asyncio.Queue[bool]":
        """Return a queue that receives every status published from now on."""
        queue: asyncio.Queue[bool] = asyncio.Queue()
        self._queues.append(queue)
        return queue

    def close_queue(self, queue: "asyncio.Queue[bool]") -> None:
        if queue in self._queues:
            self._queues.remove(queue)

    def publish(self, connected: bool) -> None:
        self.last_status = connected
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception:
                logger.exception("Connectivity status listener failed")
        for queue in self._queues:
            queue.put_nowait(connected)


class ConnectivityMonitor:
    """Bounded probe loop run after a connectivity-class transport failure.

    Args:
        check: Async predicate returning True when the network is reachable
        status: Channel to publish on (a new one is created if omitted)
        max_probes: Number of probes before giving up (default: 5)
        initial_wait: Seconds before the first probe (default: 5)
        wait_step: Seconds added to the wait after each probe (default: 5)
        max_wait: Ceiling for a single wait (default: 10)
        sleep: Coroutine used for waiting; tests pass a recorder
    """

    def __init__(
        self,
        *,
        check: Callable[[], Awaitable[bool]] = resolve_well_known_host,
        status: ConnectivityStatusChannel | None = None,
        max_probes: int = 5,
        initial_wait: float = 5.0,
        wait_step: float = 5.0,
        max_wait: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.check_fn = check
        self.status = status or ConnectivityStatusChannel()
        self.max_probes = max_probes
        self.initial_wait = initial_wait
        self.wait_step = wait_step
        self.max_wait = max_wait
        self._sleep = sleep

    def probe_waits(self) -> list[float]:
        """Wait before each probe, e.g. [5, 10, 10, 10, 10] with the defaults."""
        waits = []
        wait = self.initial_wait
        for _ in range(self.max_probes):
            waits.append(wait)
            wait = min(wait + self.wait_step, self.max_wait)
        return waits

    async def check(self) -> bool:
        """Run a single probe. A predicate that raises counts as disconnected."""
        try:
            return bool(await self.check_fn())
        except Exception as e:
            logger.debug(f"Connectivity check raised {type(e).__name__}: {e}")
            return False

    async def recover(self) -> None:
        """Wait for connectivity to come back.

        Returns once a probe succeeds; the failed attempt that triggered this
        stays failed and the retry policy decides what happens to it.

        Raises:
            ConnectivityExhausted: Every probe reported disconnected
        """
        logger.warning("Connectivity lost, probing for network")
        self.status.publish(False)

        for probe, wait in enumerate(self.probe_waits(), start=1):
            await self._sleep(wait)
            if await self.check():
                logger.info(f"Connectivity restored after {probe} probe(s)")
                self.status.publish(True)
                return
            logger.warning(f"Still offline after probe {probe}/{self.max_probes}")

        raise ConnectivityExhausted(
            f"No connectivity after {self.max_probes} probes",
            probes=self.max_probes,
        )
