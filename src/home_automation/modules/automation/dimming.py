"""
DimmingLightController: "dim now, turn off later unless interrupted".

Each light has at most one pending delayed-off action. Scheduling a new one
for the same light cancels the previous, and motion being detected again
cancels it before the light is brought back to full brightness.
"""

import logging
from typing import TYPE_CHECKING, Dict, Optional

from home_automation.core.scheduler import ScheduledAction
from home_automation.errors import ConfigurationError

if TYPE_CHECKING:
    from home_automation.core.entity import LightEntity, NumberEntity
    from home_automation.core.scheduler import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_DIM_BRIGHTNESS_PCT = 80
DEFAULT_DIM_DELAY_SECONDS = 5
DEFAULT_ACTIVE_DELAY_VALUE = 5
FULL_BRIGHTNESS_PCT = 100


class DimmingLightController:
    """
    Motion-driven brightness control for lights.

    Dimming is used only while the presence sensor runs with its long
    still-target delay: the sensor-delay entity reports the active value,
    reports nothing numeric, or no sensor-delay entity is configured.
    Otherwise a stopped motion turns the light off immediately.
    """

    def __init__(
        self,
        scheduler: "Scheduler",
        sensor_delay: Optional["NumberEntity"] = None,
        *,
        brightness_pct: int = DEFAULT_DIM_BRIGHTNESS_PCT,
        delay_seconds: float = DEFAULT_DIM_DELAY_SECONDS,
        active_delay_value: float = DEFAULT_ACTIVE_DELAY_VALUE,
        name: str = "dimmer",
    ) -> None:
        self._scheduler = scheduler
        self.sensor_delay = sensor_delay
        self.name = name
        self._pending: Dict[str, ScheduledAction] = {}
        self.set_dim_parameters(brightness_pct, delay_seconds)
        self.set_active_delay_threshold(active_delay_value)

    # =========================================================================
    # Policy
    # =========================================================================

    @property
    def brightness_pct(self) -> int:
        return self._brightness_pct

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    @property
    def active_delay_value(self) -> float:
        return self._active_delay_value

    def set_dim_parameters(self, brightness_pct: int, delay_seconds: float) -> None:
        """
        Set the dim level and how long to wait before turning off.

        Takes effect for the next motion stop; a pending delayed-off keeps
        its original delay.

        Raises:
            ConfigurationError: If brightness is outside 0..100 or delay is negative
        """
        if not 0 <= brightness_pct <= FULL_BRIGHTNESS_PCT:
            raise ConfigurationError(
                f"Dim brightness must be between 0 and 100, got {brightness_pct}"
            )
        if delay_seconds < 0:
            raise ConfigurationError(f"Dim delay must not be negative, got {delay_seconds}")
        self._brightness_pct = brightness_pct
        self._delay_seconds = delay_seconds

    def set_active_delay_threshold(self, value: float) -> None:
        """Set the sensor-delay value that means "dimming enabled"."""
        if value is None or value < 0:
            raise ConfigurationError(f"Active delay value must be >= 0, got {value}")
        self._active_delay_value = value

    @property
    def should_dim(self) -> bool:
        if self.sensor_delay is None:
            return True
        value = self.sensor_delay.value
        return value is None or value == self._active_delay_value

    # =========================================================================
    # Motion handling
    # =========================================================================

    def on_motion_detected(self, light: "LightEntity") -> None:
        """Cancel any pending delayed-off and go to full brightness."""
        self.cancel(light)
        logger.debug(f"{self.name}: motion detected, {light.entity_id} to 100%")
        light.turn_on(brightness_pct=FULL_BRIGHTNESS_PCT)

    def on_motion_stopped(self, light: "LightEntity") -> None:
        """Turn off now, or dim and schedule the delayed off."""
        self.cancel(light)

        if not self.should_dim:
            logger.debug(f"{self.name}: motion stopped, {light.entity_id} off")
            light.turn_off()
            return

        logger.debug(
            f"{self.name}: motion stopped, {light.entity_id} to {self._brightness_pct}% "
            f"for {self._delay_seconds}s"
        )
        light.turn_on(brightness_pct=self._brightness_pct)

        def turn_off() -> None:
            if self._pending.get(light.entity_id) is action:
                del self._pending[light.entity_id]
            logger.debug(f"{self.name}: dim delay over, {light.entity_id} off")
            light.turn_off()

        action = self._scheduler.schedule_once(
            self._delay_seconds, turn_off, name=f"{self.name}:{light.entity_id}:off"
        )
        self._pending[light.entity_id] = action

    # =========================================================================
    # Pending actions
    # =========================================================================

    def has_pending(self, light: "LightEntity") -> bool:
        action = self._pending.get(light.entity_id)
        return action is not None and action.pending

    @property
    def pending_count(self) -> int:
        return sum(1 for action in self._pending.values() if action.pending)

    def cancel(self, light: "LightEntity") -> None:
        """Cancel the pending delayed-off for one light, if any."""
        action = self._pending.pop(light.entity_id, None)
        if action is not None:
            action.cancel()

    def cancel_all(self) -> None:
        """Cancel every pending delayed-off. The controller stays usable."""
        pending, self._pending = self._pending, {}
        for action in pending.values():
            action.cancel()
        if pending:
            logger.debug(f"{self.name}: cancelled {len(pending)} pending actions")
