"""
Timer scheduling on the asyncio event loop.

The notifier and dispatcher never call ``asyncio.sleep`` themselves; they
ask a ``Scheduler`` to run callbacks every N seconds or once after N
seconds, and read wall-clock time from a ``Clock``. Tests substitute both
to drive simulated time.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Union

from prayer_times_bot.utils.logging import get_logger, log_error


Callback = Callable[[], Union[None, Awaitable[Any]]]


class Clock:
    """Local wall-clock time source."""

    def now(self) -> datetime:
        return datetime.now()


class JobHandle:
    """Cancellation handle for a scheduled job."""

    def __init__(self, name: str, task: Optional["asyncio.Task[None]"] = None) -> None:
        self.name = name
        self._task = task
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def cancel(self) -> None:
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


async def run_callback(callback: Callback, name: str) -> None:
    """Run a sync or async callback, logging instead of propagating failures."""
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log_error(e, {"job": name})


class Scheduler(ABC):
    """Runs callbacks periodically or once after a delay."""

    @abstractmethod
    def every(self, seconds: float, callback: Callback, name: str = "job") -> JobHandle:
        """Run ``callback`` every ``seconds``, first run after one period."""

    @abstractmethod
    def once(self, seconds: float, callback: Callback, name: str = "job") -> JobHandle:
        """Run ``callback`` once after ``seconds``."""

    @abstractmethod
    def cancel_all(self) -> None:
        """Cancel every outstanding job without waiting for it."""


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by asyncio tasks on the running loop.

    Periodic jobs run at a fixed rate against loop-clock deadlines
    (``start + k * period``), so slow callbacks never accumulate drift and
    a 60 second job observes every wall-clock minute. Deadlines are not
    aligned to minute boundaries.
    """

    def __init__(self) -> None:
        self.logger = get_logger(__name__)
        self._jobs: List[JobHandle] = []

    def every(self, seconds: float, callback: Callback, name: str = "job") -> JobHandle:
        async def _loop() -> None:
            loop = asyncio.get_running_loop()
            next_due = loop.time() + seconds
            while True:
                await asyncio.sleep(max(0.0, next_due - loop.time()))
                await run_callback(callback, name)
                # Fixed rate: the callback's own runtime does not push later ticks back
                next_due += seconds
                if next_due <= loop.time():
                    overrun = int((loop.time() - next_due) // seconds) + 1
                    self.logger.warning("Job overran its period, skipping ticks", job=name, skipped=overrun)
                    next_due += overrun * seconds

        return self._spawn(_loop(), name, seconds, repeating=True)

    def once(self, seconds: float, callback: Callback, name: str = "job") -> JobHandle:
        async def _delayed() -> None:
            await asyncio.sleep(seconds)
            await run_callback(callback, name)

        return self._spawn(_delayed(), name, seconds, repeating=False)

    def _spawn(self, coro: Awaitable[None], name: str, seconds: float, repeating: bool) -> JobHandle:
        task = asyncio.ensure_future(coro)
        handle = JobHandle(name, task)
        self._jobs = [job for job in self._jobs if not job.done]
        self._jobs.append(handle)
        self.logger.debug("Scheduled job", job=name, seconds=seconds, repeating=repeating)
        return handle

    def cancel_all(self) -> None:
        pending = [job for job in self._jobs if not job.done]
        for job in pending:
            job.cancel()
        self._jobs.clear()
        if pending:
            self.logger.info("Cancelled scheduled jobs", count=len(pending))
