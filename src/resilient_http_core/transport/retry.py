"""Retry eligibility and backoff delays.

``RetryPolicy`` answers two questions for the executor:

- ``should_retry(outcome, attempts_remaining)``: is this attempt worth repeating?
- ``delay_for(attempt_index)``: how long to wait before the next attempt?

## Retryable outcomes

| Outcome | Retried |
|---------|---------|
| Transport exception (timeout, I/O failure) | ✅ while budget remains |
| Connectivity loss that the probe loop recovered from | ✅ while budget remains |
| Status in `retry_status_codes` (502, 503, 504, 429) | ✅ while budget remains |
| Any other status (2xx, 404, 500, ...) | ❌ |
| `ConnectivityExhausted` | ❌ never |

## Backoff

`delay_ms = min(max_delay_ms, 500 * 2 ** min(attempt_index, 10) + jitter)`,
with `jitter` drawn uniformly from `[0, 200)` ms. The exponent cap keeps the
shift bounded at large attempt indices.

```python
from random import Random

policy = RetryPolicy(max_delay_ms=60000, random=Random(42))
policy.delay_for(0)  # ~0.5s
policy.delay_for(3)  # ~4.0s
```
"""

import logging
from collections.abc import Collection
from random import Random

import httpx

from resilient_http_core.errors.handler import DEFAULT_RETRY_STATUS_CODES, Outcome, classify_outcome

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Decide whether and when a failed attempt is retried.

    Args:
        max_delay_ms: Upper bound for a single delay (default: 60000)
        retry_status_codes: Status codes that trigger retries (default: 429, 502, 503, 504)
        random: Jitter source; pass a seeded Random for deterministic delays
    """

    BASE_DELAY_MS: int = 500
    MAX_JITTER_MS: int = 200
    MAX_EXPONENT: int = 10

    RETRYABLE_OUTCOMES: frozenset[Outcome] = frozenset(
        [Outcome.SERVER_RETRYABLE, Outcome.TRANSPORT_ERROR, Outcome.CONNECTIVITY_LOST]
    )

    def __init__(
        self,
        *,
        max_delay_ms: int = 60000,
        retry_status_codes: Collection[int] | None = None,
        random: Random | None = None,
    ) -> None:
        self.max_delay_ms = max_delay_ms
        self.retry_status_codes = frozenset(
            retry_status_codes if retry_status_codes is not None else DEFAULT_RETRY_STATUS_CODES
        )
        self._random = random or Random()

    def classify(self, outcome: httpx.Response | BaseException) -> Outcome:
        return classify_outcome(outcome, self.retry_status_codes)

    def should_retry(self, outcome: httpx.Response | BaseException, attempts_remaining: int) -> bool:
        """Determine if an attempt should be repeated.

        Args:
            outcome: Response received, or the exception raised instead
            attempts_remaining: Retries still allowed for this call

        Returns:
            True if should retry, False otherwise
        """
        if attempts_remaining <= 0:
            return False
        return self.classify(outcome) in self.RETRYABLE_OUTCOMES

    def delay_ms_for(self, attempt_index: int) -> int:
        """Backoff delay in milliseconds before retry number ``attempt_index`` (0-indexed)."""
        exponent = min(max(attempt_index, 0), self.MAX_EXPONENT)
        jitter = self._random.randrange(self.MAX_JITTER_MS)
        return min(self.max_delay_ms, self.BASE_DELAY_MS * (2**exponent) + jitter)

    def delay_for(self, attempt_index: int) -> float:
        """Backoff delay in seconds before retry number ``attempt_index`` (0-indexed).

        Default sequence without jitter: 0.5, 1, 2, 4, 8 ... seconds, capped
        at ``max_delay_ms``.
        """
        return self.delay_ms_for(attempt_index) / 1000
