"""Unit tests for the runtime availability monitor."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from dbdock.managers.availability_monitor import PROBE_FAILED_MESSAGE, AvailabilityMonitor
from dbdock.models.availability import AvailabilityStatus, RuntimeState

RUNNING = AvailabilityStatus(status=RuntimeState.RUNNING, version="27.3.1")
STOPPED = AvailabilityStatus(status=RuntimeState.STOPPED, error="Docker daemon is not running")


class FakeSleep:
    """Records requested delays; delays listed in ``blocking`` never finish."""

    def __init__(self, blocking=()):
        self.delays = []
        self.blocking = set(blocking)

    async def __call__(self, delay):
        self.delays.append(delay)
        if delay in self.blocking:
            await asyncio.Event().wait()


async def _drain() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture
def backend():
    mock = MagicMock()
    mock.get_availability_status = AsyncMock(return_value=RUNNING)
    return mock


@pytest.mark.asyncio
async def test_starts_in_connecting_state(backend, settings):
    monitor = AvailabilityMonitor(backend, settings)

    assert monitor.status.status == RuntimeState.CONNECTING
    assert not monitor.is_available


@pytest.mark.asyncio
async def test_start_probes_immediately(backend, settings):
    sleep = FakeSleep(blocking={settings.availability_interval_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)

    await monitor.start()
    await _drain()
    await monitor.stop()

    backend.get_availability_status.assert_awaited_once()
    assert monitor.is_available
    assert sleep.delays == [settings.availability_interval_s]


@pytest.mark.asyncio
async def test_failed_probe_retries_once_after_short_delay(backend, settings):
    backend.get_availability_status.side_effect = [RuntimeError("socket closed"), RUNNING]
    sleep = FakeSleep(blocking={settings.availability_interval_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)
    states = []

    async def record(status):
        states.append(status.status)

    monitor.subscribe(record)

    await monitor.start()
    await _drain()
    await monitor.stop()

    assert states == [RuntimeState.ERROR, RuntimeState.RUNNING]
    assert sleep.delays.count(settings.availability_retry_s) == 1
    assert backend.get_availability_status.await_count == 2


@pytest.mark.asyncio
async def test_error_state_carries_message(backend, settings):
    backend.get_availability_status.side_effect = RuntimeError("socket closed")
    monitor = AvailabilityMonitor(backend, settings)

    status = await monitor.check()

    assert status.status == RuntimeState.ERROR
    assert status.error == PROBE_FAILED_MESSAGE


@pytest.mark.asyncio
async def test_unavailable_answer_is_not_retried_early(backend, settings):
    backend.get_availability_status.return_value = STOPPED
    sleep = FakeSleep(blocking={settings.availability_interval_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)

    await monitor.start()
    await _drain()
    await monitor.stop()

    assert not monitor.is_available
    assert settings.availability_retry_s not in sleep.delays


@pytest.mark.asyncio
async def test_stop_cancels_pending_retry(backend, settings):
    backend.get_availability_status.side_effect = RuntimeError("socket closed")
    sleep = FakeSleep(blocking={settings.availability_interval_s, settings.availability_retry_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)

    await monitor.start()
    await _drain()
    assert settings.availability_retry_s in sleep.delays

    await monitor.stop()
    await _drain()

    backend.get_availability_status.assert_awaited_once()


@pytest.mark.asyncio
async def test_hidden_client_pauses_and_resume_probes_immediately(backend, settings):
    sleep = FakeSleep(blocking={settings.availability_interval_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)

    await monitor.start()
    await _drain()
    await monitor.set_visible(False)
    await _drain()
    assert monitor.is_paused
    assert backend.get_availability_status.await_count == 1

    await monitor.set_visible(True)
    await _drain()
    await monitor.stop()

    assert backend.get_availability_status.await_count == 2


@pytest.mark.asyncio
async def test_paused_monitor_does_not_retry(backend, settings):
    backend.get_availability_status.side_effect = RuntimeError("socket closed")
    sleep = FakeSleep(blocking={settings.availability_interval_s})
    monitor = AvailabilityMonitor(backend, settings, sleep=sleep)
    await monitor.start()
    await monitor.set_visible(False)

    await monitor.check()
    await _drain()
    await monitor.stop()

    assert settings.availability_retry_s not in sleep.delays


@pytest.mark.asyncio
async def test_manual_refresh_notifies(backend, settings):
    notifier = MagicMock()
    monitor = AvailabilityMonitor(backend, settings, notifier=notifier)

    await monitor.refresh()

    notifier.assert_called_once_with("success", "Docker is available")


@pytest.mark.asyncio
async def test_manual_refresh_notifies_failure(backend, settings):
    backend.get_availability_status.return_value = STOPPED
    notifier = MagicMock()
    monitor = AvailabilityMonitor(backend, settings, notifier=notifier)

    await monitor.refresh()

    notifier.assert_called_once_with("error", "Docker is not available: Docker daemon is not running")


@pytest.mark.asyncio
async def test_background_probe_is_silent(backend, settings):
    notifier = MagicMock()
    monitor = AvailabilityMonitor(backend, settings, notifier=notifier)

    await monitor.check()

    notifier.assert_not_called()


@pytest.mark.asyncio
async def test_failing_listener_is_contained(backend, settings):
    monitor = AvailabilityMonitor(backend, settings)
    monitor.subscribe(AsyncMock(side_effect=RuntimeError("listener bug")))

    status = await monitor.check()

    assert status.is_available


@pytest.mark.asyncio
async def test_context_manager_stops_tasks(backend, settings):
    sleep = FakeSleep(blocking={settings.availability_interval_s})

    async with AvailabilityMonitor(backend, settings, sleep=sleep) as monitor:
        await _drain()
        assert monitor.is_available

    assert monitor._interval_task is None
