"""Watcher scheduler — one independent polling loop per watcher.

Each loop runs its check under the watcher's timeout, alerts on failure
through the NotificationClient, records the outcome and sleeps for the
watcher's delay. Sync checks run in a thread pool so they never block
the event loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum

from pushwatch.checks.base import CheckOutcome
from pushwatch.checks.messages import error_message, failure_message, timeout_message
from pushwatch.pushover.client import DeliveryError, NotificationClient, SubmitOutcome
from pushwatch.pushover.models import NotificationRequest
from .watcher import Watcher

logger = logging.getLogger(__name__)


class CheckTimeout(Exception):
    """A check missed its deadline, or is still running from an earlier cycle."""


class CycleStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass
class CycleResult:
    """Outcome of one watcher cycle."""

    status: CycleStatus
    message: str = ""
    duration: float = 0.0
    notification: SubmitOutcome | None = None

    @property
    def passed(self) -> bool:
        return self.status == CycleStatus.PASSED


def _is_async(check: object) -> bool:
    return inspect.iscoroutinefunction(check) or inspect.iscoroutinefunction(
        getattr(check, "__call__", None)
    )


class Scheduler:
    """Runs every registered watcher forever, each on its own cadence.

    Lifecycle:
        scheduler = Scheduler(notifier, hostname="web1.example.com")
        scheduler.add(watcher)
        await scheduler.run()      # until request_stop()
    """

    def __init__(
        self,
        notifier: NotificationClient | None,
        hostname: str,
        fail_fast: bool = False,
    ) -> None:
        self.notifier = notifier
        self.hostname = hostname
        self.fail_fast = fail_fast
        self.watchers: list[Watcher] = []
        self._executor: ThreadPoolExecutor | None = None
        self._inflight: dict[Watcher, Future] = {}
        self._tasks: list[asyncio.Task[None]] = []
        self._stop: asyncio.Event | None = None
        self._fatal: BaseException | None = None

    def add(self, watcher: Watcher) -> None:
        self.watchers.append(watcher)
        logger.info(
            "Registered %s (timeout=%ss, delay=%ss, priority=%d)",
            watcher.title, watcher.config.timeout, watcher.config.delay, watcher.config.priority,
        )

    @property
    def running(self) -> bool:
        return bool(self._tasks) and self._stop is not None and not self._stop.is_set()

    # -- Lifecycle ------------------------------------------------------------

    async def start(self) -> None:
        """Spawn one loop per watcher."""
        if self._tasks:
            return
        self._stop = asyncio.Event()
        self._fatal = None
        self._ensure_executor()
        for watcher in self.watchers:
            task = asyncio.create_task(self._watch_loop(watcher), name=f"watch-{watcher.title}")
            self._tasks.append(task)
        if not self._tasks:
            logger.info("No watchers configured — scheduler idle")
        else:
            logger.info("Scheduler started: %d watchers", len(self._tasks))

    def request_stop(self) -> None:
        """Ask every loop to exit at its next suspension point."""
        if self._stop is not None and not self._stop.is_set():
            logger.info("Stop requested")
            self._stop.set()

    async def wait(self) -> None:
        """Wait for all loops; re-raise the fatal error in fail-fast mode."""
        try:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks.clear()
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None
            self._inflight.clear()
            logger.info("Scheduler stopped")
        if self._fatal is not None:
            raise self._fatal

    async def run(self) -> None:
        await self.start()
        if self._stop is not None and self._tasks:
            await self._stop.wait()
        await self.wait()

    async def stop(self) -> None:
        self.request_stop()
        await self.wait()

    # -- Cycle ----------------------------------------------------------------

    async def run_cycle(self, watcher: Watcher, notify: bool = True) -> CycleResult:
        """One check → maybe-notify → state update, without the sleep."""
        config = watcher.config
        title = watcher.title
        t0 = time.monotonic()
        try:
            outcome = await self._invoke(watcher)
        except CheckTimeout:
            status = CycleStatus.TIMEOUT
            detail = watcher.hook_message()
            if detail:
                message = failure_message(self.hostname, detail)
            else:
                message = timeout_message(self.hostname, title, config.timeout)
        except Exception as e:
            logger.warning("Testing %s ... !!! failed: %s: %s", title, type(e).__name__, e)
            status = CycleStatus.ERROR
            message = error_message(self.hostname, title, e)
        else:
            if outcome.passed:
                status = CycleStatus.PASSED
                message = outcome.message
            else:
                status = CycleStatus.FAILED
                message = failure_message(self.hostname, watcher.failure_detail(outcome.message))
        result = CycleResult(status=status, message=message, duration=time.monotonic() - t0)

        if result.passed:
            logger.info("Testing %s ... passed; waiting %s seconds", title, config.delay)
            config.alerted = False
        else:
            logger.warning("Testing %s ... %s; [%s]", title, status.value, message)
            if notify and config.notify and (not config.alerted or config.renotify_enabled):
                result.notification = await self._dispatch(watcher, title, message)
            elif notify and config.notify:
                logger.info("Not sending message for %s, already done", title)

        config.last_state = result.passed
        return result

    def _ensure_executor(self) -> ThreadPoolExecutor:
        # At most one job per watcher is ever in flight, so this never queues
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=max(4, len(self.watchers)), thread_name_prefix="pushwatch-check",
            )
        return self._executor

    def _submit_sync(self, watcher: Watcher) -> asyncio.Future:
        previous = self._inflight.get(watcher)
        if previous is not None and not previous.done():
            logger.warning("%s is still running from an earlier cycle", watcher.title)
            raise CheckTimeout(watcher.config.timeout)
        job = self._ensure_executor().submit(watcher.check, watcher.config)
        self._inflight[watcher] = job
        return asyncio.wrap_future(job)

    async def _invoke(self, watcher: Watcher) -> CheckOutcome:
        """Run the check; raise CheckTimeout only when the deadline passes.

        Exceptions raised by the check itself, TimeoutError included,
        propagate unchanged.
        """
        if _is_async(watcher.check):
            fut = asyncio.ensure_future(watcher.check(watcher.config))
        else:
            fut = self._submit_sync(watcher)
        try:
            done, _ = await asyncio.wait({fut}, timeout=watcher.config.timeout)
        except asyncio.CancelledError:
            fut.cancel()
            raise
        if not done:
            # A running thread cannot be interrupted; _inflight keeps it fenced
            fut.cancel()
            raise CheckTimeout(watcher.config.timeout)
        return CheckOutcome.coerce(fut.result())

    async def _dispatch(self, watcher: Watcher, title: str, message: str) -> SubmitOutcome | None:
        if self.notifier is None:
            return None
        config = watcher.config
        request = NotificationRequest.from_watcher(config, title=title, message=message)
        try:
            outcome = await self.notifier.submit(config, request)
        except DeliveryError as e:
            logger.warning("Notification for %s not delivered: %s", title, e)
            return None
        config.alerted = True
        return outcome

    # -- Loop -----------------------------------------------------------------

    async def _watch_loop(self, watcher: Watcher) -> None:
        """Persistent loop for a single watcher."""
        assert self._stop is not None
        while not self._stop.is_set():
            try:
                await self.run_cycle(watcher)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self.fail_fast:
                    logger.critical("Watcher %s crashed, stopping all watchers", watcher.title, exc_info=True)
                    if self._fatal is None:
                        self._fatal = e
                    self._stop.set()
                    return
                logger.exception("Watcher %s error", watcher.title)

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=watcher.config.delay)
            except asyncio.TimeoutError:
                pass
