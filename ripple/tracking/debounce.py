"""
Ripple Debouncer - Burst Coalescing
===================================

Schedules a single deferred callback per burst of triggers. Every trigger
inside the window restarts the timer, so a logical update that fans out into
many change events produces one callback shortly after the last of them.

When an asyncio event loop is running in the triggering thread the callback is
scheduled on that loop with ``call_later``; otherwise a daemon
``threading.Timer`` is used.
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Optional


class Debouncer:
    """
    Coalesce repeated ``trigger()`` calls into one ``callback()`` call.

    Example:
        ```python
        debouncer = Debouncer(0.05, lambda: print("settled"))
        for _ in range(10):
            debouncer.trigger()
        # ~50ms later: "settled" (once)
        ```
    """

    def __init__(self, delay: float, callback: Callable[[], Any]) -> None:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay!r}")
        self.delay = delay
        self._callback = callback
        self._lock = threading.Lock()
        self._handle: Optional[Any] = None
        self._pending = False
        # Bumped on every reschedule so a timer that already started firing
        # can tell it has been superseded.
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending

    def trigger(self) -> None:
        with self._lock:
            self._cancel_handle()
            self._generation += 1
            self._pending = True
            self._handle = self._schedule(self._generation)

    def _schedule(self, generation: int) -> Any:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            return loop.call_later(self.delay, self._expire, generation)

        timer = threading.Timer(self.delay, self._expire, args=(generation,))
        timer.daemon = True
        timer.start()
        return timer

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._pending:
                return
            self._pending = False
            self._handle = None

        try:
            self._callback()
        except Exception as e:
            logging.error(f"Error in debounced callback {self._callback!r}: {e}")

    def flush(self) -> bool:
        """Run a pending callback now on the calling thread. Returns whether one ran."""
        with self._lock:
            if not self._pending:
                return False
            self._cancel_handle()
            self._generation += 1
            self._pending = False

        self._callback()
        return True

    def cancel(self) -> None:
        with self._lock:
            self._cancel_handle()
            self._generation += 1
            self._pending = False
