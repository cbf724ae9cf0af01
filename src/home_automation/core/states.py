"""
State values and the StateChange record.

States are plain strings in Home Assistant style ("on", "off", "unavailable",
"unknown", or a numeric reading such as "5"). Comparisons ignore case.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, Optional

ON = "on"
OFF = "off"
UNAVAILABLE = "unavailable"
UNKNOWN = "unknown"


def _utc_now() -> datetime:
    """Get current UTC time (for default factory)."""
    return datetime.now(UTC)


def normalize(state: Optional[str]) -> Optional[str]:
    """Lower-case a state string, passing None through."""
    if state is None:
        return None
    return str(state).strip().lower()


def state_is(state: Optional[str], expected: str) -> bool:
    """Case-insensitive state comparison."""
    return normalize(state) == expected.lower()


def is_on(state: Optional[str]) -> bool:
    return state_is(state, ON)


def is_off(state: Optional[str]) -> bool:
    return state_is(state, OFF)


def is_unavailable(state: Optional[str]) -> bool:
    return state_is(state, UNAVAILABLE)


def is_unknown(state: Optional[str]) -> bool:
    return state_is(state, UNKNOWN)


def is_available(state: Optional[str]) -> bool:
    """True if the state carries a real value (not empty, unavailable or unknown)."""
    value = normalize(state)
    return bool(value) and value not in (UNAVAILABLE, UNKNOWN)


def numeric_value(state: Optional[str]) -> Optional[float]:
    """
    Parse a numeric reading.

    Returns:
        The value as float, or None if the state is missing or not numeric
    """
    if state is None:
        return None
    try:
        return float(state)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class StateChange:
    """
    One observed state transition of a device.

    Attributes:
        entity_id: Entity that changed (e.g., "binary_sensor.kitchen_motion")
        previous: State before the change (None if never reported)
        current: State after the change
        timestamp: When the change was observed
        actor_id: User/integration that caused the change ("" or None = physical)
        attributes: Entity attributes after the change
    """

    entity_id: str
    previous: Optional[str]
    current: Optional[str]
    timestamp: datetime = field(default_factory=_utc_now)
    actor_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_on(self) -> bool:
        return is_on(self.current)

    @property
    def is_off(self) -> bool:
        return is_off(self.current)

    @property
    def was_on(self) -> bool:
        return is_on(self.previous)

    @property
    def was_off(self) -> bool:
        return is_off(self.previous)

    @property
    def from_unavailable(self) -> bool:
        return is_unavailable(self.previous)

    @property
    def changed(self) -> bool:
        """True if the state value itself changed (not just attributes)."""
        return normalize(self.previous) != normalize(self.current)
