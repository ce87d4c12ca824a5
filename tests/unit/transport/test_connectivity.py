"""Tests for the connectivity probe loop and status channel."""

import asyncio
import socket
from unittest.mock import patch

import pytest

from resilient_http_core.errors.exceptions import ConnectivityExhausted
from resilient_http_core.testing import ConnectivitySequence, SleepRecorder
from resilient_http_core.transport.connectivity import (
    ConnectivityMonitor,
    ConnectivityStatusChannel,
    resolve_well_known_host,
)


class TestStatusChannel:
    @pytest.mark.unit
    def test_listeners_receive_events_in_order(self):
        channel = ConnectivityStatusChannel()
        events = []
        channel.subscribe(events.append)

        channel.publish(False)
        channel.publish(True)

        assert events == [False, True]
        assert channel.last_status is True

    @pytest.mark.unit
    def test_unsubscribe(self):
        channel = ConnectivityStatusChannel()
        events = []
        unsubscribe = channel.subscribe(events.append)

        unsubscribe()
        unsubscribe()
        channel.publish(False)

        assert events == []

    @pytest.mark.unit
    def test_failing_listener_does_not_break_publish(self):
        channel = ConnectivityStatusChannel()
        events = []

        def broken(_):
            raise RuntimeError("listener bug")

        channel.subscribe(broken)
        channel.subscribe(events.append)

        channel.publish(False)

        assert events == [False]

    @pytest.mark.unit
    async def test_queue_subscribers(self):
        channel = ConnectivityStatusChannel()
        queue = channel.listen()

        channel.publish(False)
        channel.publish(True)

        assert await queue.get() is False
        assert await queue.get() is True

    @pytest.mark.unit
    async def test_closed_queue_receives_nothing(self):
        channel = ConnectivityStatusChannel()
        queue = channel.listen()
        channel.close_queue(queue)

        channel.publish(False)

        assert queue.empty()

    @pytest.mark.unit
    def test_last_status_starts_unknown(self):
        assert ConnectivityStatusChannel().last_status is None


class TestProbeLoop:
    @pytest.mark.unit
    def test_default_probe_waits(self):
        assert ConnectivityMonitor().probe_waits() == [5, 10, 10, 10, 10]

    @pytest.mark.unit
    async def test_recovers_after_failed_probes(self):
        sleep = SleepRecorder()
        check = ConnectivitySequence([False, False, True])
        monitor = ConnectivityMonitor(check=check, sleep=sleep)
        events = []
        monitor.status.subscribe(events.append)

        await monitor.recover()

        assert check.calls == 3
        assert sleep.delays == [5, 10, 10]
        assert events == [False, True]

    @pytest.mark.unit
    async def test_exhausts_after_five_probes(self):
        sleep = SleepRecorder()
        check = ConnectivitySequence([False])
        monitor = ConnectivityMonitor(check=check, sleep=sleep)
        events = []
        monitor.status.subscribe(events.append)

        with pytest.raises(ConnectivityExhausted) as exc_info:
            await monitor.recover()

        assert exc_info.value.probes == 5
        assert check.calls == 5
        assert sleep.delays == [5, 10, 10, 10, 10]
        assert events == [False]

    @pytest.mark.unit
    async def test_raising_check_counts_as_offline(self):
        calls = 0

        async def flaky():
            nonlocal calls
            calls += 1
            if calls == 1:
                raise OSError("probe failed")
            return True

        monitor = ConnectivityMonitor(check=flaky, sleep=SleepRecorder())

        await monitor.recover()

        assert calls == 2

    @pytest.mark.unit
    async def test_custom_schedule(self):
        sleep = SleepRecorder()
        monitor = ConnectivityMonitor(
            check=ConnectivitySequence([False]),
            sleep=sleep,
            max_probes=3,
            initial_wait=1,
            wait_step=1,
            max_wait=2,
        )

        with pytest.raises(ConnectivityExhausted):
            await monitor.recover()

        assert sleep.delays == [1, 2, 2]

    @pytest.mark.unit
    async def test_check_runs_single_probe_without_publishing(self):
        monitor = ConnectivityMonitor(check=ConnectivitySequence([True]))
        events = []
        monitor.status.subscribe(events.append)

        assert await monitor.check() is True
        assert events == []


class TestDefaultCheck:
    @pytest.mark.unit
    async def test_resolves_host(self):
        loop = asyncio.get_running_loop()
        infos = [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("93.184.216.34", 443))]

        async def fake_getaddrinfo(*args, **kwargs):
            return infos

        with patch.object(loop, "getaddrinfo", new=fake_getaddrinfo):
            assert await resolve_well_known_host() is True

    @pytest.mark.unit
    async def test_dns_failure_is_offline(self):
        loop = asyncio.get_running_loop()

        async def failing_getaddrinfo(*args, **kwargs):
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

        with patch.object(loop, "getaddrinfo", new=failing_getaddrinfo):
            assert await resolve_well_known_host() is False
