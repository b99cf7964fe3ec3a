from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timers(Protocol):
    """Schedules one-shot callbacks; every handle must be cancellable."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioTimers:
    """Timers backed by the running asyncio event loop.

    The loop is resolved lazily so the scheduler can be built outside a coroutine
    and only needs a running loop once a timer is actually requested.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_ms / 1000, callback)


@dataclass(order=True, slots=True)
class _ManualEntry:
    due_ms: int
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimers:
    """Virtual clock: nothing fires until `advance()` is called.

    Used by tests and by callers that want to step a session deterministically.
    Callbacks fire in due-time order (ties in scheduling order); callbacks that
    schedule new timers within the advanced window fire in the same call.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._heap: list[_ManualEntry] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualEntry:
        entry = _ManualEntry(due_ms=self.now_ms + max(delay_ms, 0), seq=next(self._seq), callback=callback)
        heapq.heappush(self._heap, entry)
        return entry

    @property
    def pending(self) -> int:
        return sum(1 for e in self._heap if not e.cancelled)

    def advance(self, ms: int) -> None:
        if ms < 0:
            raise ValueError("Cannot advance the clock backwards")
        target = self.now_ms + ms
        while self._heap and self._heap[0].due_ms <= target:
            entry = heapq.heappop(self._heap)
            if entry.cancelled:
                continue
            self.now_ms = entry.due_ms
            entry.callback()
        self.now_ms = target
