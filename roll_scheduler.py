"""
Deferred, cancelable callbacks for the game controller.

The controller only needs two things from a scheduler: `now()` in seconds
and `call_later(delay, callback)` returning a handle with `cancel()`.

- PollingScheduler: callbacks fire when the owner's loop calls run_due().
  Pass a FakeClock for deterministic tests.
- AsyncioScheduler: delegates to an asyncio event loop.
"""

import asyncio
import time
from typing import Callable, List, Optional


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 0.0):
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class ScheduledCall:
    """Handle for a callback registered with PollingScheduler."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class PollingScheduler:
    """
    Single-threaded scheduler driven by explicit polling.

    Nothing fires on its own; the presentation loop (or a test) calls
    run_due() and every call whose due time has passed runs, in due order.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize scheduler.

        Args:
            clock: Zero-argument callable returning seconds (default: time.monotonic)
        """
        self.clock = clock or time.monotonic
        self._calls: List[ScheduledCall] = []

    def now(self) -> float:
        return self.clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(self.now() + max(0.0, delay), callback)
        self._calls.append(call)
        return call

    def run_due(self) -> int:
        """
        Run every pending call whose due time has passed.

        Returns:
            Number of callbacks run
        """
        now = self.now()
        due = sorted((c for c in self._calls if c.pending and c.due <= now), key=lambda c: c.due)
        self._calls = [c for c in self._calls if c.pending and c not in due]

        for call in due:
            # An earlier callback may have cancelled this one.
            if not call.pending:
                continue
            call.fired = True
            call.callback()
        return len(due)

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self._calls if c.pending)


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        """
        Initialize scheduler.

        Args:
            loop: Event loop to use (default: the running loop)
        """
        self.loop = loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)
