"""
Entities: device state sources and actuator command sinks.

An Entity holds the last state reported by the host and exposes the change
stream through the shared EventBus. Domain subclasses add the commands their
devices accept. Commands are fire-and-forget: a failing command is logged and
never raised into the calling rule.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from home_automation.core import states
from home_automation.core.bus import EventFilter, EventHandler
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription

if TYPE_CHECKING:
    from datetime import datetime

    from home_automation.core.adapter import PlatformAdapter
    from home_automation.core.bus import EventBus

logger = logging.getLogger(__name__)


class Entity:
    """
    A device state source.

    Attributes:
        entity_id: Platform entity ID (e.g., "light.kitchen")
        state: Last reported state (None until the host reports one)
        attributes: Last reported attributes
    """

    def __init__(
        self,
        entity_id: str,
        bus: "EventBus",
        platform: "PlatformAdapter",
        state: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.entity_id = entity_id
        self._bus = bus
        self._platform = platform
        self._state = state
        self._attributes: Dict[str, Any] = dict(attributes or {})

    @property
    def domain(self) -> str:
        return self.entity_id.split(".", 1)[0]

    @property
    def state(self) -> Optional[str]:
        return self._state

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def current_state(self) -> Optional[str]:
        return self._state

    def is_on(self) -> bool:
        return states.is_on(self._state)

    def is_off(self) -> bool:
        return states.is_off(self._state)

    def is_available(self) -> bool:
        return states.is_available(self._state)

    def is_unavailable(self) -> bool:
        return states.is_unavailable(self._state)

    def subscribe(
        self,
        handler: EventHandler,
        event_filter: Optional[EventFilter] = None,
    ) -> Subscription:
        """
        Subscribe to this entity's state changes.

        Args:
            handler: Callable receiving StateChange objects
            event_filter: Optional extra filter; copied with entity_id set to ours

        Returns:
            Subscription handle
        """
        if event_filter is None:
            event_filter = EventFilter(entity_id=self.entity_id)
        else:
            event_filter = EventFilter(
                entity_id=self.entity_id,
                to_state=event_filter.to_state,
                from_state=event_filter.from_state,
            )
        return self._bus.subscribe(handler, event_filter)

    def snapshot(self) -> StateChange:
        """A synthetic change carrying the current state (no previous state)."""
        return StateChange(
            entity_id=self.entity_id,
            previous=None,
            current=self._state,
            attributes=dict(self._attributes),
        )

    def update_state(
        self,
        new_state: Optional[str],
        attributes: Optional[Dict[str, Any]] = None,
        actor_id: Optional[str] = None,
        timestamp: Optional["datetime"] = None,
    ) -> Optional[StateChange]:
        """
        Record a state reported by the host and publish the change.

        A report that repeats the current state only refreshes the attributes;
        nothing is published for it.

        Args:
            new_state: The reported state
            attributes: Reported attributes (None = keep previous)
            actor_id: Who caused the change (None/"" = physical operation)
            timestamp: When it happened (defaults to now)

        Returns:
            The published StateChange, or None if the state did not change
        """
        previous = self._state
        self._state = new_state
        if attributes is not None:
            self._attributes = dict(attributes)

        if states.normalize(previous) == states.normalize(new_state):
            logger.debug(f"{self.entity_id} still {new_state}, not publishing")
            return None

        kwargs: Dict[str, Any] = {}
        if timestamp is not None:
            kwargs["timestamp"] = timestamp
        change = StateChange(
            entity_id=self.entity_id,
            previous=previous,
            current=new_state,
            actor_id=actor_id,
            attributes=dict(self._attributes),
            **kwargs,
        )
        self._bus.publish(change)
        return change

    def call_service(self, service: str, **data: Any) -> None:
        """
        Send a command to the device (fire-and-forget).

        Failures are logged and swallowed so rule callbacks stay total.
        """
        payload = data or None
        logger.debug(f"Executing: {self.domain}.{service} -> {self.entity_id} {payload or ''}")
        try:
            accepted = self._platform.call_service(
                domain=self.domain,
                service=service,
                entity_id=self.entity_id,
                data=payload,
            )
        except Exception as e:
            logger.error(
                f"Command {self.domain}.{service} failed for {self.entity_id}: {e}",
                exc_info=True,
            )
            return

        if accepted is False:
            logger.warning(f"Platform rejected {self.domain}.{service} for {self.entity_id}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entity_id!r}, state={self._state!r})"


class BinarySensorEntity(Entity):
    """Motion, presence, door and other two-state sensors."""

    def is_occupied(self) -> bool:
        return self.is_on()

    def is_clear(self) -> bool:
        return self.is_off()

    def is_open(self) -> bool:
        return self.is_on()

    def is_closed(self) -> bool:
        return self.is_off()


class SensorEntity(Entity):
    """Read-only sensor, usually numeric."""

    @property
    def value(self) -> Optional[float]:
        return states.numeric_value(self._state)


class SwitchEntity(Entity):
    """On/off actuator; also used as a master toggle."""

    def turn_on(self) -> None:
        self.call_service("turn_on")

    def turn_off(self) -> None:
        self.call_service("turn_off")

    def toggle(self) -> None:
        self.call_service("toggle")


class InputBooleanEntity(SwitchEntity):
    """Helper boolean, commonly used as a virtual master toggle."""


class FanEntity(SwitchEntity):
    """Fan actuator."""


class LightEntity(Entity):
    """Dimmable light."""

    def turn_on(self, brightness_pct: Optional[int] = None, **params: Any) -> None:
        if brightness_pct is not None:
            params["brightness_pct"] = brightness_pct
        self.call_service("turn_on", **params)

    def turn_off(self) -> None:
        self.call_service("turn_off")

    def toggle(self) -> None:
        self.call_service("toggle")

    @property
    def brightness(self) -> float:
        return float(self._attributes.get("brightness") or 0)


class ButtonEntity(Entity):
    """Stateless push button (state is the last press timestamp)."""

    def press(self) -> None:
        self.call_service("press")


class NumberEntity(Entity):
    """Settable numeric parameter (e.g., a sensor's still-target delay)."""

    @property
    def value(self) -> Optional[float]:
        return states.numeric_value(self._state)

    def set_value(self, value: float) -> None:
        self.call_service("set_value", value=value)
