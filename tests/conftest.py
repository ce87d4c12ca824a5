"""Pytest configuration and shared fixtures for resilient-http-core tests."""

from random import Random

import pytest

from resilient_http_core.testing import SleepRecorder, make_jwt


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear test-related environment variables before each test.

    This prevents test pollution when testing configuration from the environment.
    """
    import os

    test_prefixes = ("TEST_", "RESILIENT_HTTP_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture
def sleep() -> SleepRecorder:
    """Instant sleep that records requested delays."""
    return SleepRecorder()


@pytest.fixture
def seeded_random() -> Random:
    return Random(1234)


@pytest.fixture
def expired_token() -> str:
    # exp = 1 (1970-01-01T00:00:01Z)
    return make_jwt(exp=1)


@pytest.fixture
def fresh_token() -> str:
    return make_jwt()
