"""Background monitor for container runtime availability."""

import asyncio
from typing import Awaitable, Callable, List

from dbdock.backend.protocol import ContainerBackend
from dbdock.config import Settings, get_settings
from dbdock.models.availability import AvailabilityStatus, RuntimeState
from dbdock.utils import Notifier, get_logger, log_notifier
from dbdock.utils.audit_logger import AuditEventType, get_audit_logger
from dbdock.utils.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

PROBE_FAILED_MESSAGE = "Could not connect to Docker"

AvailabilityListener = Callable[[AvailabilityStatus], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]


class AvailabilityMonitor:
    """Polls the runtime on a steady interval with a faster retry after failures.

    Two tasks are involved: the interval loop and a one-shot retry scheduled
    when a probe raises. Both are cancelled together when the monitor stops or
    is paused, and a paused monitor never probes.
    """

    def __init__(
        self,
        backend: ContainerBackend,
        settings: Settings | None = None,
        notifier: Notifier | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            backend: Backend whose availability is probed
            settings: Settings providing the interval and retry delay
            notifier: Sink for manual refresh outcomes
            sleep: Awaitable sleep, replaceable in tests
        """
        settings = settings or get_settings()
        self.backend = backend
        self.interval = settings.availability_interval_s
        self.retry_delay = settings.availability_retry_s
        self.notifier = notifier or log_notifier
        self._sleep = sleep
        self.metrics = get_metrics_collector()
        self.audit = get_audit_logger()

        self.status = AvailabilityStatus(status=RuntimeState.CONNECTING)
        self._listeners: List[AvailabilityListener] = []
        self._running = False
        self._paused = False
        self._interval_task: asyncio.Task | None = None
        self._retry_task: asyncio.Task | None = None

    @property
    def is_available(self) -> bool:
        return self.status.is_available

    @property
    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, listener: AvailabilityListener) -> Callable[[], None]:
        """
        Register a coroutine called with every probe result.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> None:
        """Probe immediately, then keep probing on the interval."""
        if self._running:
            logger.warning("Availability monitor already running")
            return

        self._running = True
        if not self._paused:
            self._interval_task = asyncio.create_task(self._run_interval_loop())
        logger.info(
            "Availability monitor started",
            extra={"interval_s": self.interval, "retry_s": self.retry_delay},
        )

    async def stop(self) -> None:
        """Cancel the interval loop and any pending retry."""
        if not self._running:
            return

        self._running = False
        await self._cancel_tasks()
        logger.info("Availability monitor stopped")

    async def __aenter__(self) -> "AvailabilityMonitor":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def set_visible(self, visible: bool) -> None:
        """
        Pause polling while the client is hidden; resume with an immediate probe.

        Args:
            visible: Whether the consuming client is in the foreground
        """
        if not visible:
            if self._paused:
                return
            self._paused = True
            await self._cancel_tasks()
            logger.debug("Availability polling paused")
            return

        if not self._paused:
            return
        self._paused = False
        if self._running:
            self._interval_task = asyncio.create_task(self._run_interval_loop())
        logger.debug("Availability polling resumed")

    async def refresh(self) -> AvailabilityStatus:
        """Probe now, outside the interval, and notify the outcome."""
        return await self.check(notify=True)

    async def check(self, notify: bool = False) -> AvailabilityStatus:
        """
        Probe the runtime once and publish the result.

        A probe that raises moves the monitor to the error state and schedules
        one retry after the short delay.

        Args:
            notify: Send the outcome to the notifier (manual refreshes only)

        Returns:
            The new availability status
        """
        try:
            status = await self.backend.get_availability_status()
        except Exception as e:
            logger.warning("Runtime availability probe failed", extra={"error": str(e)})
            status = AvailabilityStatus(status=RuntimeState.ERROR, error=PROBE_FAILED_MESSAGE)
            self._schedule_retry()

        previous = self.status
        self.status = status
        self.metrics.record_availability_probe(status.is_available)

        if previous.is_available != status.is_available or previous.status == RuntimeState.CONNECTING:
            logger.info(
                "Runtime availability changed",
                extra={"status": status.status.value, "error": status.error},
            )
            self.audit.log_event(
                AuditEventType.RUNTIME_AVAILABILITY,
                details={"status": status.status.value, "error": status.error},
            )

        if notify:
            if status.is_available:
                self.notifier("success", "Docker is available")
            else:
                self.notifier("error", f"Docker is not available: {status.error or status.status.value}")

        for listener in list(self._listeners):
            try:
                await listener(status)
            except Exception as e:
                logger.error("Availability listener failed", extra={"error": str(e)})

        return status

    async def _run_interval_loop(self) -> None:
        while self._running and not self._paused:
            try:
                await self.check()
                await self._sleep(self.interval)
            except asyncio.CancelledError:
                break

    def _schedule_retry(self) -> None:
        if not self._running or self._paused:
            return
        current = asyncio.current_task()
        if self._retry_task is not None and self._retry_task is not current and not self._retry_task.done():
            self._retry_task.cancel()
        self._retry_task = asyncio.create_task(self._retry_after_delay())

    async def _retry_after_delay(self) -> None:
        await self._sleep(self.retry_delay)
        if self._running and not self._paused:
            await self.check()

    async def _cancel_tasks(self) -> None:
        for task in (self._interval_task, self._retry_task):
            if task is None or task is asyncio.current_task():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                # Task cancellation is expected during shutdown
                pass
        self._interval_task = None
        self._retry_task = None
