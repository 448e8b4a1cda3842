"""
Ticker abstraction for the feed driver.

The driver never sleeps or blocks; it asks a ticker to call it back on a
fixed cadence. AsyncioTicker schedules on an asyncio event loop, ManualTicker
fires only when told to and is used to drive feeds deterministically.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

TickCallback = Callable[[], None]


class TickerHandle(ABC):
    """Handle to a scheduled periodic callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the callback. No call happens after cancel() returns."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until cancelled."""


class Ticker(ABC):
    """Schedules periodic callbacks."""

    @abstractmethod
    def schedule(self, period_ms: int, callback: TickCallback) -> TickerHandle:
        """Call callback every period_ms until the returned handle is cancelled."""


class _AsyncioHandle(TickerHandle):

    def __init__(self, loop: asyncio.AbstractEventLoop, period_ms: int, callback: TickCallback):
        self._loop = loop
        self._period = period_ms / 1000.0
        self._callback = callback
        self._timer: Optional[asyncio.TimerHandle] = None
        self._active = True
        self._next_deadline = loop.time() + self._period
        self._timer = loop.call_at(self._next_deadline, self._run)

    def _run(self) -> None:
        if not self._active:
            return
        try:
            self._callback()
        finally:
            if self._active:
                # Fixed rate; deadlines missed while the loop was busy are skipped
                now = self._loop.time()
                self._next_deadline += self._period
                if self._next_deadline <= now:
                    missed = int((now - self._next_deadline) / self._period) + 1
                    self._next_deadline += missed * self._period
                self._timer = self._loop.call_at(self._next_deadline, self._run)

    def cancel(self) -> None:
        self._active = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def active(self) -> bool:
        return self._active


class AsyncioTicker(Ticker):
    """Ticker backed by asyncio timer handles on the running (or given) loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule(self, period_ms: int, callback: TickCallback) -> TickerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _AsyncioHandle(loop, period_ms, callback)


class _ManualHandle(TickerHandle):

    def __init__(self, ticker: "ManualTicker", period_ms: int, callback: TickCallback):
        self._ticker = ticker
        self.period_ms = period_ms
        self.callback = callback
        self._active = True

    def cancel(self) -> None:
        self._active = False
        self._ticker._handles.discard(self)

    @property
    def active(self) -> bool:
        return self._active


class ManualTicker(Ticker):
    """Ticker that fires only when fire() is called."""

    def __init__(self) -> None:
        self._handles: set[_ManualHandle] = set()

    def schedule(self, period_ms: int, callback: TickCallback) -> TickerHandle:
        handle = _ManualHandle(self, period_ms, callback)
        self._handles.add(handle)
        return handle

    @property
    def active_count(self) -> int:
        return len(self._handles)

    def fire(self) -> int:
        """Invoke every active callback once; returns how many ran."""
        fired = 0
        for handle in list(self._handles):
            if handle.active:
                handle.callback()
                fired += 1
        return fired
