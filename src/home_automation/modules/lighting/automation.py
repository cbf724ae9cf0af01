"""
Motion light automation builder.

Composes the lighting presets into one ToggleableAutomation from a
MotionLightConfig.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from home_automation.core.entity import BinarySensorEntity, LightEntity, NumberEntity, SwitchEntity
from home_automation.core.identity import IdentityRegistry
from home_automation.modules.automation.dimming import DimmingLightController
from home_automation.modules.automation.toggleable import (
    Callback,
    RuleProducer,
    ToggleableAutomation,
)
from home_automation.modules.lighting.presets import (
    dimming_lights_follow_motion,
    lights_follow_motion,
    master_switch_follows_manual_light,
    reactivate_after_idle,
    sensor_delay_rules,
    sync_light_to_motion,
)

if TYPE_CHECKING:
    from home_automation.config import MotionLightConfig
    from home_automation.core.registry import EntityRegistry
    from home_automation.core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class MotionLightAutomation(ToggleableAutomation):
    """ToggleableAutomation that also exposes the entities and dimmer it drives."""

    def __init__(
        self,
        automation_id: str,
        master_switch: SwitchEntity,
        motion: BinarySensorEntity,
        light: LightEntity,
        dimmer: Optional[DimmingLightController] = None,
        **kwargs,
    ) -> None:
        super().__init__(automation_id, master_switch, **kwargs)
        self.motion = motion
        self.light = light
        self.dimmer = dimmer


def build_motion_light(
    config: "MotionLightConfig",
    registry: "EntityRegistry",
    scheduler: "Scheduler",
    identities: Optional[IdentityRegistry] = None,
) -> MotionLightAutomation:
    """
    Build a motion light automation.

    Persistent rules:
    - manual light operation drives the master switch (follow_manual_light)
    - reactivate the master switch after a quiet period (reactivate_after_seconds)

    Toggleable rules:
    - light follows motion, dimming first when a DimmingConfig is given
    - sensor delay adaptation when a sensor_delay entity is given

    Args:
        config: Automation configuration
        registry: Registry to resolve entity IDs
        scheduler: Timer service
        identities: Actor classification (default: no known users)

    Returns:
        Unstarted MotionLightAutomation

    Raises:
        ConfigurationError: If a referenced entity is missing or of the wrong type
    """
    identities = identities or IdentityRegistry()
    master = registry.require(config.master_switch, SwitchEntity)
    motion = registry.require(config.motion_sensor, BinarySensorEntity)
    light = registry.require(config.light, LightEntity)
    sensor_delay = (
        registry.require(config.sensor_delay, NumberEntity) if config.sensor_delay else None
    )

    controller: Optional[DimmingLightController] = None
    if config.dimming is not None:
        controller = DimmingLightController(
            scheduler,
            sensor_delay,
            brightness_pct=config.dimming.brightness_pct,
            delay_seconds=config.dimming.delay_seconds,
            active_delay_value=config.sensor_delay_settings.active_value,
            name=f"{config.id}:dimmer",
        )

    persistent: List[RuleProducer] = []
    if config.follow_manual_light:
        persistent.append(
            lambda: master_switch_follows_manual_light(light, motion, master, identities)
        )
    if config.reactivate_after_seconds:
        persistent.append(
            lambda: reactivate_after_idle(
                motion, master, scheduler, config.reactivate_after_seconds
            )
        )

    toggleable: List[RuleProducer] = []
    if controller is not None:
        toggleable.append(lambda: dimming_lights_follow_motion(motion, light, controller))
    else:
        toggleable.append(lambda: lights_follow_motion(motion, light))
    if sensor_delay is not None:
        toggleable.append(
            lambda: sensor_delay_rules(
                motion, sensor_delay, scheduler, config.sensor_delay_settings
            )
        )

    on_disabled: List[Callback] = []
    cleanup: List[Callback] = []
    if controller is not None:
        on_disabled.append(controller.cancel_all)
        cleanup.append(controller.cancel_all)

    automation = MotionLightAutomation(
        config.id,
        master,
        motion,
        light,
        controller,
        persistent_rules=persistent,
        toggleable_rules=toggleable,
        on_enabled=[lambda: sync_light_to_motion(motion, light, controller)],
        on_disabled=on_disabled,
        cleanup=cleanup,
    )
    logger.debug(
        f"Built motion light {config.id}: {len(persistent)} persistent, "
        f"{len(toggleable)} toggleable rule groups"
    )
    return automation
