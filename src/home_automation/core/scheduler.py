"""
Scheduler abstraction and the delayed action token.

Delays are never implemented with blocking sleeps. A Scheduler registers a
one-shot callback and hands back a ScheduledAction; when the timer expires the
action is posted to the EventBus so it runs in FIFO order with state changes.

A ScheduledAction re-checks its cancelled flag at the moment the dispatcher
runs it, so cancelling from any handler that runs earlier always wins.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, UTC
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from home_automation.errors import ConfigurationError

if TYPE_CHECKING:
    from home_automation.core.bus import EventBus

logger = logging.getLogger(__name__)

Delay = float | int | timedelta


def to_seconds(delay: Delay) -> float:
    """Convert a delay (seconds or timedelta) to seconds, rejecting negatives."""
    seconds = delay.total_seconds() if isinstance(delay, timedelta) else float(delay)
    if seconds < 0:
        raise ConfigurationError(f"Delay must not be negative, got {seconds}")
    return seconds


class ScheduledAction:
    """
    Cancellable handle to a one-shot scheduled effect.

    The effect runs at most once, and never after cancel() has been called.
    """

    def __init__(self, callback: Callable[[], None], due: datetime, name: str = "") -> None:
        self._callback = callback
        self.due = due
        self.name = name
        self._cancelled = False
        self._done = False
        self._handle: Optional[Any] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not self._cancelled and not self._done

    def _bind(self, handle: Any) -> None:
        """Attach the platform timer handle so cancel() can release it."""
        self._handle = handle

    def cancel(self) -> None:
        """Cancel the effect. No-op if it already ran or was cancelled."""
        if not self.pending:
            return
        self._cancelled = True
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()
        logger.debug(f"Cancelled scheduled action {self.name or id(self)}")

    def run(self) -> None:
        """Execute the effect if still pending. Called by the dispatcher."""
        if not self.pending:
            return
        self._done = True
        self._handle = None
        self._callback()

    def __repr__(self) -> str:
        status = "pending" if self.pending else ("cancelled" if self._cancelled else "done")
        return f"ScheduledAction({self.name!r}, due={self.due.isoformat()}, {status})"


class Scheduler(ABC):
    """
    Abstract timer service.

    The host provides a concrete implementation. Expired actions must be run
    through the EventBus so they never interleave with a running handler.
    """

    @abstractmethod
    def now(self) -> datetime:
        """
        Get current time.

        Returns:
            Current datetime (timezone-aware)
        """
        pass

    @abstractmethod
    def schedule_once(
        self,
        delay: Delay,
        callback: Callable[[], None],
        name: str = "",
    ) -> ScheduledAction:
        """
        Schedule a one-shot callback.

        Args:
            delay: Seconds (or timedelta) from now
            callback: Zero-argument effect
            name: Label used in debug logs

        Returns:
            Token that can cancel the effect
        """
        pass


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler for tests and simulations.

    Time only moves when advance() or advance_to() is called. Due actions are
    fired in due-time order (ties in scheduling order), each through the bus.

    Example:
        scheduler = ManualScheduler(bus)
        scheduler.schedule_once(10, turn_off)
        scheduler.advance(10)  # turn_off runs here
    """

    def __init__(
        self,
        bus: Optional["EventBus"] = None,
        start: Optional[datetime] = None,
    ) -> None:
        self._bus = bus
        self._now = start or datetime.now(UTC)
        self._queue: List[Tuple[datetime, int, ScheduledAction]] = []
        self._sequence = itertools.count()

    def now(self) -> datetime:
        return self._now

    def schedule_once(
        self,
        delay: Delay,
        callback: Callable[[], None],
        name: str = "",
    ) -> ScheduledAction:
        due = self._now + timedelta(seconds=to_seconds(delay))
        action = ScheduledAction(callback, due, name)
        heapq.heappush(self._queue, (due, next(self._sequence), action))
        logger.debug(f"Scheduled {name or 'action'} at {due.isoformat()}")
        return action

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, action in self._queue if action.pending)

    def advance(self, seconds: Delay) -> None:
        """Move the clock forward, firing every action that becomes due."""
        self.advance_to(self._now + timedelta(seconds=to_seconds(seconds)))

    def advance_to(self, target: datetime) -> None:
        """Move the clock to target, firing every action due at or before it."""
        while self._queue:
            due, _, action = self._queue[0]
            if not action.pending:
                heapq.heappop(self._queue)
                continue
            if due > target:
                break
            heapq.heappop(self._queue)
            self._now = max(self._now, due)
            self._dispatch(action)

        self._now = max(self._now, target)

    def _dispatch(self, action: ScheduledAction) -> None:
        if self._bus is not None:
            self._bus.post(action.run)
        else:
            action.run()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Uses loop.call_later() for timers; expiries are posted to the bus.
    """

    def __init__(
        self,
        bus: "EventBus",
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._bus = bus
        self._loop = loop

    def now(self) -> datetime:
        return datetime.now(UTC)

    def schedule_once(
        self,
        delay: Delay,
        callback: Callable[[], None],
        name: str = "",
    ) -> ScheduledAction:
        seconds = to_seconds(delay)
        loop = self._loop or asyncio.get_running_loop()
        action = ScheduledAction(callback, self.now() + timedelta(seconds=seconds), name)
        action._bind(loop.call_later(seconds, self._expire, action))
        return action

    def _expire(self, action: ScheduledAction) -> None:
        self._bus.post(action.run)
