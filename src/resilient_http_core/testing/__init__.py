"""Testing utilities for code built on resilient_http_core.

Example:
    ```python
    from resilient_http_core.testing import SleepRecorder, make_jwt, mock_transport


    async def test_refresh_once():
        sleep = SleepRecorder()
        config = ClientConfiguration(
            base_url="https://api.example.com",
            headers={"Authorization": f"Bearer {make_jwt(exp=1)}"},
        )
        client = ResilientClient(config, transport=mock_transport(handler), sleep=sleep)
    ```
"""

import base64
import json
from collections.abc import Callable, Iterable

import httpx

from resilient_http_core.transport.base import HttpxTransport

# 9999-12-31T23:59:59Z
FAR_FUTURE_EXP = 253402300799


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def make_jwt(exp: float | None = FAR_FUTURE_EXP, **claims) -> str:
    """Build an unsigned JWT carrying ``exp`` and any extra claims."""
    payload = dict(claims)
    if exp is not None:
        payload["exp"] = exp
    return f"{_b64({'alg': 'HS256', 'typ': 'JWT'})}.{_b64(payload)}.signature"


class SleepRecorder:
    """Drop-in replacement for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ConnectivitySequence:
    """Connectivity predicate that replays scripted answers, then repeats the last one."""

    def __init__(self, answers: Iterable[bool]) -> None:
        self._answers = list(answers) or [True]
        self.calls = 0

    async def __call__(self) -> bool:
        answer = self._answers[min(self.calls, len(self._answers) - 1)]
        self.calls += 1
        return answer


def mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> HttpxTransport:
    """HttpxTransport whose requests are answered by ``handler``."""
    return HttpxTransport(transport=httpx.MockTransport(handler))


__all__ = [
    "FAR_FUTURE_EXP",
    "ConnectivitySequence",
    "SleepRecorder",
    "make_jwt",
    "mock_transport",
]
