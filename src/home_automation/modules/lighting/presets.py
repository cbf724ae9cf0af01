"""
Lighting rule presets.

Each preset is a rule producer body: it registers its rules and returns the
Subscriptions, ready to be handed to a ToggleableAutomation as a persistent
or toggleable rule.

Presets:
- lights_follow_motion: motion on/off switches the light (toggleable)
- dimming_lights_follow_motion: same, but dim-then-off (toggleable)
- sensor_delay_rules: adapt the presence sensor's still-target delay (toggleable)
- master_switch_follows_manual_light: manual light use drives the master (persistent)
- reactivate_after_idle: re-enable the master after a quiet period (persistent)
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from home_automation.core import states
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription
from home_automation.modules.automation.triggers import (
    on_change,
    on_flickering,
    on_turned_off,
    on_turned_on,
)

if TYPE_CHECKING:
    from home_automation.config import SensorDelayConfig
    from home_automation.core.entity import BinarySensorEntity, LightEntity, NumberEntity, SwitchEntity
    from home_automation.core.identity import IdentityRegistry
    from home_automation.core.scheduler import Scheduler
    from home_automation.modules.automation.dimming import DimmingLightController

logger = logging.getLogger(__name__)


def lights_follow_motion(
    motion: "BinarySensorEntity",
    light: "LightEntity",
) -> List[Subscription]:
    """
    Turn the light on with motion and off without it.

    Args:
        motion: Motion/presence sensor
        light: Light to control

    Returns:
        Registered subscriptions
    """

    def motion_detected(change: StateChange) -> None:
        light.turn_on()

    def motion_cleared(change: StateChange) -> None:
        light.turn_off()

    return [
        on_turned_on(motion, motion_detected),
        on_turned_off(motion, motion_cleared),
    ]


def dimming_lights_follow_motion(
    motion: "BinarySensorEntity",
    light: "LightEntity",
    controller: "DimmingLightController",
) -> List[Subscription]:
    """
    Like lights_follow_motion, but a stopped motion dims first.

    Example:
        controller = DimmingLightController(scheduler, sensor_delay)
        subs = dimming_lights_follow_motion(motion, light, controller)
    """

    def motion_detected(change: StateChange) -> None:
        controller.on_motion_detected(light)

    def motion_cleared(change: StateChange) -> None:
        controller.on_motion_stopped(light)

    return [
        on_turned_on(motion, motion_detected),
        on_turned_off(motion, motion_cleared),
    ]


def sensor_delay_rules(
    motion: "BinarySensorEntity",
    sensor_delay: "NumberEntity",
    scheduler: "Scheduler",
    settings: "SensorDelayConfig",
) -> List[Subscription]:
    """
    Keep the presence sensor's still-target delay in step with the room.

    - Motion on for wait_seconds: long (active) delay
    - Motion off for wait_seconds: short (inactive) delay
    - Motion flickering: long delay right away
    """

    def occupied(change: StateChange) -> None:
        sensor_delay.set_value(settings.active_value)

    def vacated(change: StateChange) -> None:
        sensor_delay.set_value(settings.inactive_value)

    def flickering(flips: int) -> None:
        logger.debug(f"{motion.entity_id} flickered {flips} times, extending sensor delay")
        sensor_delay.set_value(settings.active_value)

    return [
        on_turned_on(motion, occupied, hold=settings.wait_seconds, scheduler=scheduler),
        on_turned_off(motion, vacated, hold=settings.wait_seconds, scheduler=scheduler),
        on_flickering(motion, flickering, scheduler),
    ]


def master_switch_follows_manual_light(
    light: "LightEntity",
    motion: "BinarySensorEntity",
    master: "SwitchEntity",
    identities: "IdentityRegistry",
) -> List[Subscription]:
    """
    Let manual light operation drive the master switch.

    When someone switches the light by hand so that it matches the motion
    sensor (on with motion, off without; a sensor with no usable state
    counts as no motion), automation is turned back on.
    When they switch it against the sensor, automation is turned off so it
    stops fighting them.
    """

    def manual_change(change: StateChange) -> None:
        agrees = change.is_on == motion.is_on()
        logger.debug(
            f"{light.entity_id} manually {change.current} by "
            f"{identities.name_of(change.actor_id)}, motion {motion.state}"
        )
        if agrees:
            master.turn_on()
        else:
            master.turn_off()

    return [
        on_change(
            light,
            manual_change,
            when=lambda state: states.is_on(state) or states.is_off(state),
            actor=identities.is_manually_operated,
            allow_from_unavailable=False,
        )
    ]


def reactivate_after_idle(
    motion: "BinarySensorEntity",
    master: "SwitchEntity",
    scheduler: "Scheduler",
    seconds: float,
) -> List[Subscription]:
    """Turn the master switch back on after motion has been off for `seconds`."""

    def reactivate(change: StateChange) -> None:
        logger.info(f"No motion on {motion.entity_id} for {seconds}s, re-enabling {master.entity_id}")
        master.turn_on()

    return [
        on_turned_off(
            motion,
            reactivate,
            hold=seconds,
            scheduler=scheduler,
            only_if=lambda: not master.is_on(),
            start_immediately=True,
        )
    ]


def sync_light_to_motion(
    motion: "BinarySensorEntity",
    light: "LightEntity",
    controller: Optional["DimmingLightController"] = None,
) -> None:
    """
    Force the light to match the motion sensor right now.

    Used as a reconcile callback when automation is (re-)enabled. Does
    nothing while the sensor has no usable state.
    """
    if motion.is_on():
        if controller is not None:
            controller.on_motion_detected(light)
        else:
            light.turn_on()
    elif motion.is_off():
        if controller is not None:
            controller.cancel(light)
        light.turn_off()
