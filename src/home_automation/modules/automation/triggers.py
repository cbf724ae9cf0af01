"""
Trigger helpers: turn an entity's change stream into rule callbacks.

The central piece is HoldFilter, which fires once when a predicate on the
state has held continuously for a duration. The on_change() family wires
filters, actor checks and guards onto an entity and returns one Subscription
that tears everything down.
"""

import logging
from collections import deque
from typing import TYPE_CHECKING, Callable, Deque, Optional, Tuple

from home_automation.core import states
from home_automation.core.scheduler import Delay, ScheduledAction, to_seconds
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription
from home_automation.errors import ConfigurationError

if TYPE_CHECKING:
    from datetime import datetime

    from home_automation.core.entity import Entity
    from home_automation.core.scheduler import Scheduler

logger = logging.getLogger(__name__)

StatePredicate = Callable[[Optional[str]], bool]
ActorPredicate = Callable[[Optional[str]], bool]
ChangeHandler = Callable[[StateChange], None]
Guard = Callable[[], bool]


# =============================================================================
# Hold filter
# =============================================================================


class HoldFilter:
    """
    Emit once when a predicate has held continuously for a duration.

    Rules per incoming change:
    - predicate true, no interval in progress: start one, schedule a timer
    - predicate true, interval in progress: leave it alone
    - predicate false: cancel the timer, end the interval, emit nothing

    An uncancelled timer emits unconditionally. After emitting, the filter
    stays latched until the predicate turns false, so one unbroken interval
    yields at most one emission.

    Example:
        hold = HoldFilter(scheduler, states.is_off, 3600, reactivate)
        motion.subscribe(hold.feed)
    """

    def __init__(
        self,
        scheduler: "Scheduler",
        predicate: StatePredicate,
        duration: Delay,
        on_hold: ChangeHandler,
        name: str = "",
    ) -> None:
        """
        Initialize a hold filter.

        Args:
            scheduler: Timer service
            predicate: Condition over the new state
            duration: How long the predicate must hold (must be > 0)
            on_hold: Called with the change that started the interval
            name: Label used in debug logs

        Raises:
            ConfigurationError: If duration is not positive
        """
        seconds = to_seconds(duration)
        if seconds <= 0:
            raise ConfigurationError(f"Hold duration must be positive, got {seconds}")

        self._scheduler = scheduler
        self._predicate = predicate
        self._on_hold = on_hold
        self.duration = seconds
        self.name = name
        self._holding = False
        self._timer: Optional[ScheduledAction] = None
        self._started_at: Optional["datetime"] = None
        self._disposed = False

    @property
    def holding(self) -> bool:
        """True while an interval is in progress (pending or already emitted)."""
        return self._holding

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to emit."""
        return self._timer is not None and self._timer.pending

    @property
    def started_at(self) -> Optional["datetime"]:
        return self._started_at

    def feed(self, change: StateChange) -> None:
        """Process one state change."""
        if self._disposed:
            return

        if not self._predicate(change.current):
            if self._holding:
                logger.debug(f"Hold {self.name} broken by {change.current!r}")
            self.reset()
            return

        if self._holding:
            return

        self._holding = True
        self._started_at = self._scheduler.now()
        self._timer = self._scheduler.schedule_once(
            self.duration,
            lambda: self._fire(change),
            name=f"hold:{self.name}",
        )
        logger.debug(f"Hold {self.name} started, fires in {self.duration}s")

    __call__ = feed

    def reset(self) -> None:
        """Cancel any pending timer and end the interval."""
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
        self._holding = False
        self._started_at = None

    def dispose(self) -> None:
        self.reset()
        self._disposed = True

    def _fire(self, change: StateChange) -> None:
        self._timer = None
        logger.debug(f"Hold {self.name} satisfied for {self.duration}s")
        self._on_hold(change)


# =============================================================================
# Flicker and double click
# =============================================================================


class FlickerDetector:
    """
    Detect a state flipping back and forth quickly.

    Emits the flip count once at least minimum_flips on/off flips land inside
    a sliding window of window_seconds. The window is cleared after emitting.
    """

    def __init__(
        self,
        scheduler: "Scheduler",
        on_flicker: Callable[[int], None],
        minimum_flips: int = 4,
        window_seconds: float = 10,
    ) -> None:
        if minimum_flips < 2:
            raise ConfigurationError(f"minimum_flips must be at least 2, got {minimum_flips}")
        if window_seconds <= 0:
            raise ConfigurationError(f"window_seconds must be positive, got {window_seconds}")
        self._scheduler = scheduler
        self._on_flicker = on_flicker
        self.minimum_flips = minimum_flips
        self.window_seconds = window_seconds
        self._flips: Deque["datetime"] = deque()

    def feed(self, change: StateChange) -> None:
        if not change.changed:
            return
        if not states.is_available(change.previous) or not states.is_available(change.current):
            return

        now = self._scheduler.now()
        self._flips.append(now)
        while (now - self._flips[0]).total_seconds() > self.window_seconds:
            self._flips.popleft()

        if len(self._flips) >= self.minimum_flips:
            count = len(self._flips)
            self._flips.clear()
            logger.debug(f"{change.entity_id} flickered {count} times")
            self._on_flicker(count)

    __call__ = feed


class DoubleClickDetector:
    """
    Detect two consecutive changes at most timeout_seconds apart.

    Emits (first, second). The pair is consumed, so a third quick change
    starts a new pair.
    """

    def __init__(
        self,
        scheduler: "Scheduler",
        on_double_click: Callable[[StateChange, StateChange], None],
        timeout_seconds: float,
    ) -> None:
        if timeout_seconds <= 0:
            raise ConfigurationError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self._scheduler = scheduler
        self._on_double_click = on_double_click
        self.timeout_seconds = timeout_seconds
        self._last: Optional[Tuple["datetime", StateChange]] = None

    def feed(self, change: StateChange) -> None:
        now = self._scheduler.now()
        last, self._last = self._last, (now, change)
        if last is None:
            return
        if (now - last[0]).total_seconds() <= self.timeout_seconds:
            self._last = None
            self._on_double_click(last[1], change)

    __call__ = feed


# =============================================================================
# Wiring helpers
# =============================================================================


def on_change(
    entity: "Entity",
    handler: ChangeHandler,
    *,
    when: Optional[StatePredicate] = None,
    hold: Delay = 0,
    scheduler: Optional["Scheduler"] = None,
    only_if: Optional[Guard] = None,
    actor: Optional[ActorPredicate] = None,
    start_immediately: bool = False,
    allow_from_unavailable: bool = True,
) -> Subscription:
    """
    Subscribe a rule callback to an entity's changes.

    Args:
        entity: Entity to watch
        handler: Rule callback, receives the triggering StateChange
        when: Predicate over the new state (None = every change)
        hold: If > 0, `when` must hold continuously this long before firing
        scheduler: Required when hold > 0
        only_if: Guard evaluated right before calling the handler
        actor: Predicate over StateChange.actor_id, checked first
        start_immediately: Also process the entity's current state right away
        allow_from_unavailable: If False, ignore changes coming from
            "unavailable" and changes that did not alter the state value

    Returns:
        Subscription releasing the bus registration and any hold timer

    Raises:
        ConfigurationError: If hold > 0 without a scheduler or predicate
    """
    name = getattr(handler, "__name__", "handler")

    def emit(change: StateChange) -> None:
        if only_if is not None and not only_if():
            logger.debug(f"{entity.entity_id}: guard blocked {name}")
            return
        handler(change)

    hold_filter: Optional[HoldFilter] = None
    if to_seconds(hold) > 0:
        if scheduler is None:
            raise ConfigurationError(f"{entity.entity_id}: a hold needs a scheduler")
        if when is None:
            raise ConfigurationError(f"{entity.entity_id}: a hold needs a `when` predicate")
        hold_filter = HoldFilter(scheduler, when, hold, emit, name=f"{entity.entity_id}:{name}")

    def process(change: StateChange) -> None:
        if not allow_from_unavailable and (change.from_unavailable or not change.changed):
            return
        if actor is not None and not actor(change.actor_id):
            return
        if hold_filter is not None:
            hold_filter.feed(change)
        elif when is None or when(change.current):
            emit(change)

    bus_subscription = entity.subscribe(process)

    def release() -> None:
        bus_subscription.dispose()
        if hold_filter is not None:
            hold_filter.dispose()

    subscription = Subscription(release, name=f"{entity.entity_id}:{name}")
    if start_immediately:
        try:
            process(entity.snapshot())
        except Exception:
            subscription.dispose()
            raise
    return subscription


def on_turned_on(entity: "Entity", handler: ChangeHandler, **kwargs) -> Subscription:
    """Shortcut for on_change(..., when=is_on)."""
    return on_change(entity, handler, when=states.is_on, **kwargs)


def on_turned_off(entity: "Entity", handler: ChangeHandler, **kwargs) -> Subscription:
    """Shortcut for on_change(..., when=is_off)."""
    return on_change(entity, handler, when=states.is_off, **kwargs)


def on_unavailable(entity: "Entity", handler: ChangeHandler, **kwargs) -> Subscription:
    return on_change(entity, handler, when=states.is_unavailable, **kwargs)


def on_flickering(
    entity: "Entity",
    handler: Callable[[int], None],
    scheduler: "Scheduler",
    minimum_flips: int = 4,
    window_seconds: float = 10,
) -> Subscription:
    """Call handler(flip_count) when the entity flickers."""
    detector = FlickerDetector(scheduler, handler, minimum_flips, window_seconds)
    return entity.subscribe(detector.feed)


def on_double_click(
    entity: "Entity",
    handler: Callable[[StateChange, StateChange], None],
    scheduler: "Scheduler",
    timeout_seconds: float,
) -> Subscription:
    """Call handler(first, second) for two changes within timeout_seconds."""
    detector = DoubleClickDetector(scheduler, handler, timeout_seconds)
    return entity.subscribe(detector.feed)
