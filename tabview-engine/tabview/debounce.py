"""Cancellable, delayed calls.

A `Debouncer` postpones a callback until its input has been quiet for a
while. Each new trigger cancels the call scheduled by the previous one, so
only the most recent input is ever applied.

The actual timer is provided by a scheduler. A scheduler has a single
method, `call_later(delay, callback)`, which returns a handle with a
`cancel()` method.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from attrs import define, field

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> TimerHandle: ...


class ThreadingScheduler:
    """Runs the callbacks on `threading.Timer` threads."""

    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@define
class AsyncioScheduler:
    """Runs the callbacks in an asyncio event loop.

    Attributes:
        loop: The event loop; defaults to the loop that is running when
            the scheduler is created.
    """

    loop: asyncio.AbstractEventLoop = field(factory=asyncio.get_running_loop)

    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)


@define
class _ManualCall:
    due: float
    callback: Callable[[], Any]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@define
class ManualScheduler:
    """A scheduler driven by hand.

    Time only moves when `advance()` is called, which makes the scheduler
    useful for synchronous callers and for tests.

    Attributes:
        now: The current time, in seconds.
        calls: The calls that were scheduled and not yet run.
    """

    now: float = field(default=0.0)
    calls: List[_ManualCall] = field(factory=list)

    def call_later(
        self, delay: float, callback: Callable[[], Any]
    ) -> _ManualCall:
        call = _ManualCall(due=self.now + delay, callback=callback)
        self.calls.append(call)
        return call

    @property
    def waiting(self) -> int:
        """The number of calls that are neither run nor cancelled."""
        return sum(1 for c in self.calls if not c.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the time forward and run the calls that became due.

        Returns:
            The number of calls that were run.
        """
        self.now += seconds
        due = [c for c in self.calls if c.due <= self.now]
        self.calls = [c for c in self.calls if c.due > self.now]
        count = 0
        for call in sorted(due, key=lambda c: c.due):
            if call.cancelled:
                continue
            call.callback()
            count += 1
        return count

    def run_all(self) -> int:
        """Run all the calls that are waiting, regardless of their time."""
        if not self.calls:
            return 0
        return self.advance(max(c.due for c in self.calls) - self.now)


def default_scheduler() -> Scheduler:
    """Use the running event loop if there is one, threads otherwise."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return ThreadingScheduler()
    return AsyncioScheduler(loop=loop)


@define
class Debouncer:
    """Delay a callback until the input stops changing.

    Attributes:
        callback: The function that receives the arguments of the most
            recent `trigger()` call.
        delay_ms: The quiet period in milliseconds. With zero or less the
            callback is invoked synchronously by `trigger()`.
        scheduler: The timer provider; defaults to `default_scheduler()`,
            resolved when the first call is scheduled.
        _generation: Incremented on each trigger; a scheduled call that
            finds a different generation was superseded and does nothing.
        _pending: The arguments of the call that waits.
        _handle: The handle of the scheduled call.
    """

    callback: Callable[..., Any]
    delay_ms: int = field(default=300)
    scheduler: Optional[Scheduler] = field(default=None)
    _generation: int = field(default=0, init=False)
    _pending: Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]] = field(
        default=None, init=False
    )
    _handle: Optional[TimerHandle] = field(default=None, init=False)
    _lock: threading.RLock = field(factory=threading.RLock, init=False)

    @property
    def pending(self) -> bool:
        """Whether a call waits for the delay to pass."""
        return self._pending is not None

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback with these arguments.

        Any call scheduled earlier is cancelled.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._cancel_handle()
            self._pending = (args, kwargs)
            if self.delay_ms <= 0:
                run_now = True
            else:
                run_now = False
                if self.scheduler is None:
                    self.scheduler = default_scheduler()
                self._handle = self.scheduler.call_later(
                    self.delay_ms / 1000.0, lambda: self._fire(generation)
                )
        if run_now:
            self.flush()

    def flush(self) -> bool:
        """Run the waiting call now.

        Exceptions raised by the callback propagate to the caller.

        Returns:
            True if there was a call to run.
        """
        with self._lock:
            pending = self._take()
        if pending is None:
            return False
        args, kwargs = pending
        self.callback(*args, **kwargs)
        return True

    def cancel(self) -> bool:
        """Drop the waiting call.

        Returns:
            True if there was a call to drop.
        """
        with self._lock:
            return self._take() is not None

    def _take(self) -> Optional[Tuple[Tuple[Any, ...], Dict[str, Any]]]:
        self._generation += 1
        self._cancel_handle()
        pending, self._pending = self._pending, None
        return pending

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                logger.debug("Dropping superseded call %d", generation)
                return
            self._handle = None
            pending, self._pending = self._pending, None
            self._generation += 1

        args, kwargs = pending
        try:
            self.callback(*args, **kwargs)
        except Exception:
            # Nobody waits for the timer, so there is nobody to raise to.
            logger.exception("Debounced call failed")
