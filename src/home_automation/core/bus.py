"""
Event Bus implementation for state-change routing.

The Event Bus is the single-threaded dispatcher shared by every automation.
State changes and timer expiries are queued and processed one at a time,
each to completion, in FIFO order.
"""

from collections import deque
from typing import Callable, Deque, List, Optional

import logging

from home_automation.core.states import StateChange, normalize
from home_automation.core.subscriptions import Subscription

logger = logging.getLogger(__name__)


class EventFilter:
    """
    Filter for state-change subscriptions.

    Allows subscribers to filter changes by entity and by previous/new state.
    """

    def __init__(
        self,
        entity_id: Optional[str] = None,
        to_state: Optional[str] = None,
        from_state: Optional[str] = None,
    ):
        """
        Initialize an event filter.

        Args:
            entity_id: Filter by entity ID (None = all entities)
            to_state: Only changes whose new state equals this (case-insensitive)
            from_state: Only changes whose previous state equals this
        """
        self.entity_id = entity_id
        self.to_state = normalize(to_state)
        self.from_state = normalize(from_state)

    def matches(self, change: StateChange) -> bool:
        """
        Check if a state change matches this filter.

        Args:
            change: The state change to check

        Returns:
            True if the change matches the filter
        """
        if self.entity_id and change.entity_id != self.entity_id:
            return False

        if self.to_state is not None and normalize(change.current) != self.to_state:
            return False

        if self.from_state is not None and normalize(change.previous) != self.from_state:
            return False

        return True

    def __repr__(self) -> str:
        return (
            f"EventFilter(entity_id={self.entity_id!r}, "
            f"to_state={self.to_state!r}, from_state={self.from_state!r})"
        )


EventHandler = Callable[[StateChange], None]


class _Registration:
    def __init__(
        self,
        event_filter: EventFilter,
        handler: EventHandler,
        release: Callable[[], None],
        name: str,
    ) -> None:
        self.event_filter = event_filter
        self.handler = handler
        self.subscription = Subscription(release, name=name)


class EventBus:
    """
    Single-threaded, run-to-completion event bus.

    publish() and post() only enqueue work; the queue is drained by the
    outermost caller. A handler that publishes while being dispatched never
    re-enters another handler, it simply appends to the queue.

    Handlers are wrapped in try/except to prevent one bad rule from crashing
    the dispatcher or other automations.
    """

    def __init__(self) -> None:
        """Initialize the event bus."""
        self._registrations: List[_Registration] = []
        self._queue: Deque[Callable[[], None]] = deque()
        self._dispatching = False

    @property
    def pending(self) -> int:
        """Number of queued work items not yet dispatched."""
        return len(self._queue)

    @property
    def handler_count(self) -> int:
        return len(self._registrations)

    def subscribe(
        self,
        handler: EventHandler,
        event_filter: Optional[EventFilter] = None,
    ) -> Subscription:
        """
        Subscribe to state changes.

        Args:
            handler: Callable that receives StateChange objects
            event_filter: Optional filter for changes (None = receive all changes)

        Returns:
            Subscription handle; dispose() it to unsubscribe
        """
        if event_filter is None:
            event_filter = EventFilter()

        name = getattr(handler, "__name__", repr(handler))
        registration = _Registration(
            event_filter, handler, lambda: self._remove(registration), name
        )
        self._registrations.append(registration)
        logger.debug(f"Subscribed handler {name} with filter {event_filter}")
        return registration.subscription

    def unsubscribe(self, handler: EventHandler) -> None:
        """
        Unsubscribe a handler from all changes.

        Args:
            handler: The handler to unsubscribe
        """
        for registration in [r for r in self._registrations if r.handler == handler]:
            registration.subscription.dispose()

    def _remove(self, registration: _Registration) -> None:
        self._registrations = [r for r in self._registrations if r is not registration]
        logger.debug(f"Unsubscribed handler {registration.subscription.name}")

    def publish(self, change: StateChange) -> None:
        """
        Queue a state change for delivery to all matching subscribers.

        Args:
            change: The state change to publish
        """
        logger.debug(
            f"Publishing change: {change.entity_id} {change.previous} -> {change.current}"
        )
        self._queue.append(lambda: self._deliver(change))
        self._drain()

    def post(self, callback: Callable[[], None]) -> None:
        """
        Queue an arbitrary callback (e.g., a timer expiry) on the dispatcher.

        Args:
            callback: Zero-argument callable run in FIFO order with state changes
        """
        self._queue.append(callback)
        self._drain()

    def _drain(self) -> None:
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                item = self._queue.popleft()
                try:
                    item()
                except Exception as e:
                    logger.error(f"Error in dispatched callback: {e}", exc_info=True)
        finally:
            self._dispatching = False

    def _deliver(self, change: StateChange) -> None:
        # Resolve at delivery time so late subscribers/disposals are honoured
        for registration in list(self._registrations):
            if not registration.subscription.active:
                continue
            if not registration.event_filter.matches(change):
                continue
            try:
                registration.handler(change)
            except Exception as e:
                logger.error(
                    f"Error in event handler {registration.subscription.name} "
                    f"for {change.entity_id}: {e}",
                    exc_info=True,
                )
