"""Timer collaborators that feed delayed events back into a session.

The session never sleeps. It asks a scheduler to call it back once the
AI's thinking time or a move's settle time has passed. Timers cannot be
cancelled; the session ignores callbacks that belong to an older game.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callback) -> None:
        ...


class ManualScheduler:
    """Deterministic scheduler driven by explicit calls.

    Callbacks run in due-time order, ties in the order they were scheduled.
    """

    def __init__(self) -> None:
        self._queue: List[Tuple[float, int, Callback]] = []
        self._counter = itertools.count()
        self._clock = 0.0

    @property
    def clock(self) -> float:
        return self._clock

    @property
    def pending(self) -> int:
        return len(self._queue)

    def call_later(self, delay: float, callback: Callback) -> None:
        heapq.heappush(self._queue, (self._clock + max(0.0, delay), next(self._counter), callback))

    def run_next(self) -> bool:
        if not self._queue:
            return False
        due, _, callback = heapq.heappop(self._queue)
        self._clock = max(self._clock, due)
        callback()
        return True

    def run_all(self, max_steps: int = 10_000) -> int:
        steps = 0
        while self._queue:
            if steps >= max_steps:
                raise RuntimeError(f"Scheduler did not settle after {max_steps} callbacks")
            self.run_next()
            steps += 1
        return steps

    def advance(self, seconds: float) -> int:
        target = self._clock + seconds
        steps = 0
        while self._queue and self._queue[0][0] <= target:
            self.run_next()
            steps += 1
        self._clock = target
        return steps


class AsyncioScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._outstanding = 0
        self._idle: Optional[asyncio.Event] = None

    @property
    def outstanding(self) -> int:
        return self._outstanding

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _get_idle(self) -> asyncio.Event:
        if self._idle is None:
            self._idle = asyncio.Event()
            self._idle.set()
        return self._idle

    def call_later(self, delay: float, callback: Callback) -> None:
        loop = self._get_loop()
        self._outstanding += 1
        self._get_idle().clear()
        loop.call_later(max(0.0, delay), self._run, callback)

    def _run(self, callback: Callback) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback %r failed", callback)
        finally:
            self._outstanding -= 1
            if self._outstanding == 0:
                self._get_idle().set()

    async def drain(self) -> None:
        """Wait until every scheduled callback, including ones they schedule, has run."""
        await self._get_idle().wait()
