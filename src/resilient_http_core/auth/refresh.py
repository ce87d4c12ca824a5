"""Single-flight token refresh.

When many requests discover an expired token at once, exactly one of them
runs the refresh callback; the rest wait for it and then read the updated
``Authorization`` header.

The refresh callback returns a ``RefreshResult``:

```python
async def refresh() -> RefreshResult:
    try:
        token = await auth_server.exchange(refresh_token)
    except AuthServerError as e:
        return RefreshFailure(e)
    return RefreshSuccess(token)
```
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from resilient_http_core.auth.tokens import is_expired
from resilient_http_core.errors.exceptions import RefreshError

if TYPE_CHECKING:
    from resilient_http_core.config import ClientConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshSuccess:
    """The refresh produced a new access token."""

    token: str


@dataclass(frozen=True)
class RefreshFailure:
    """The refresh failed; ``error`` describes why."""

    error: Exception


RefreshResult = RefreshSuccess | RefreshFailure


@dataclass
class RefreshState:
    """A refresh that is currently running. At most one per coordinator."""

    done: asyncio.Event = field(default_factory=asyncio.Event)


class TokenRefreshCoordinator:
    """Guards the refresh callback so that only one refresh runs at a time.

    One coordinator belongs to one client. Two clients never block on each
    other's refresh.

    Args:
        now: Clock returning epoch seconds, used for the expiry check
    """

    def __init__(self, *, now: Callable[[], float] = time.time) -> None:
        self._now = now
        self._state: RefreshState | None = None

    @property
    def refresh_in_progress(self) -> bool:
        return self._state is not None

    async def wait_for_refresh(self) -> None:
        """Wait for the in-flight refresh, if any, to finish."""
        state = self._state
        if state is not None:
            await state.done.wait()

    async def ensure_valid(self, config: "ClientConfiguration") -> None:
        """Make sure the configured token is not known to be expired.

        Returns immediately when there is no authorization header, when
        ``wait_for_token_refresh`` is off, or when no refresh callback is
        configured.

        Args:
            config: Configuration whose headers may be updated

        Raises:
            RefreshError: This call ran the refresh and it failed or timed out.
                Callers that only waited on someone else's refresh never
                see this error.
        """
        if not config.authorization_present() or not config.wait_for_token_refresh or config.refresh_token is None:
            return

        state = self._state
        if state is not None:
            logger.debug("Token refresh in progress, waiting for it to finish")
            await state.done.wait()
            return

        if not is_expired(config.authorization_token(), leeway=config.token_leeway, now=self._now):
            return

        # No await between the expiry check above and claiming the refresh here.
        state = self._state = RefreshState()
        try:
            await self._run_refresh(config)
        finally:
            self._state = None
            state.done.set()

    async def _run_refresh(self, config: "ClientConfiguration") -> None:
        logger.info("Authorization token expired, refreshing")

        try:
            result = await asyncio.wait_for(config.refresh_token(), timeout=config.refresh_timeout)
        except TimeoutError as e:
            logger.error(f"Token refresh timed out after {config.refresh_timeout}s")
            raise RefreshError(f"Token refresh timed out after {config.refresh_timeout}s", cause=e) from e
        except Exception as e:
            logger.error(f"Token refresh raised {type(e).__name__}: {e}")
            raise RefreshError(f"Token refresh failed: {e}", cause=e) from e

        if isinstance(result, str):
            result = RefreshSuccess(result)

        match result:
            case RefreshSuccess(token=token) if token:
                config.set_authorization_token(token)
                logger.info("Token refresh succeeded")
            case RefreshSuccess():
                logger.error("Token refresh returned an empty token")
                raise RefreshError("Token refresh returned an empty token")
            case RefreshFailure(error=error):
                logger.error(f"Token refresh failed: {error}")
                raise RefreshError(f"Token refresh failed: {error}", cause=error)
            case _:
                raise RefreshError(f"Token refresh returned unsupported result {type(result).__name__}")
