"""
Fan automation builder.

Fans follow motion while the master switch is on. Turning the main fan on
or off by hand moves the master switch with it, and a long quiet period
re-enables automation.
"""

import logging
from typing import TYPE_CHECKING, List, Optional

from home_automation.core.entity import BinarySensorEntity, SwitchEntity
from home_automation.core.identity import IdentityRegistry
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription
from home_automation.modules.automation.toggleable import RuleProducer, ToggleableAutomation
from home_automation.modules.automation.triggers import on_turned_off, on_turned_on

if TYPE_CHECKING:
    from home_automation.config import FanConfig
    from home_automation.core.registry import EntityRegistry
    from home_automation.core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class FanAutomation(ToggleableAutomation):
    """ToggleableAutomation driving a group of fans."""

    def __init__(
        self,
        automation_id: str,
        master_switch: SwitchEntity,
        motion: BinarySensorEntity,
        fans: List[SwitchEntity],
        **kwargs,
    ) -> None:
        super().__init__(automation_id, master_switch, **kwargs)
        self.motion = motion
        self.fans = fans

    @property
    def main_fan(self) -> SwitchEntity:
        return self.fans[0]


def fans_follow_motion(
    motion: BinarySensorEntity,
    fans: List[SwitchEntity],
    scheduler: "Scheduler",
    off_after_seconds: float = 0,
) -> List[Subscription]:
    """
    Turn every fan on with motion and off once motion has stopped.

    Args:
        motion: Motion/presence sensor
        fans: Fans to control
        scheduler: Timer service (used when off_after_seconds > 0)
        off_after_seconds: How long motion must stay off before the fans stop
    """

    def motion_detected(change: StateChange) -> None:
        for fan in fans:
            fan.turn_on()

    def motion_cleared(change: StateChange) -> None:
        for fan in fans:
            fan.turn_off()

    return [
        on_turned_on(motion, motion_detected),
        on_turned_off(motion, motion_cleared, hold=off_after_seconds, scheduler=scheduler),
    ]


def master_switch_follows_manual_fan(
    fan: SwitchEntity,
    master: SwitchEntity,
    identities: IdentityRegistry,
) -> List[Subscription]:
    """Manual fan on turns the master on; manual fan off turns it off."""

    def fan_on(change: StateChange) -> None:
        logger.debug(f"{fan.entity_id} turned on by {identities.name_of(change.actor_id)}")
        master.turn_on()

    def fan_off(change: StateChange) -> None:
        logger.debug(f"{fan.entity_id} turned off by {identities.name_of(change.actor_id)}")
        master.turn_off()

    kwargs = dict(actor=identities.is_manually_operated, allow_from_unavailable=False)
    return [
        on_turned_on(fan, fan_on, **kwargs),
        on_turned_off(fan, fan_off, **kwargs),
    ]


def reactivate_when_idle(
    motion: BinarySensorEntity,
    master: SwitchEntity,
    scheduler: "Scheduler",
    seconds: float,
) -> List[Subscription]:
    """Turn the master switch on after motion has been off for `seconds` while it is off."""

    def reactivate(change: StateChange) -> None:
        logger.info(f"{motion.entity_id} idle for {seconds}s, re-enabling {master.entity_id}")
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


def sync_main_fan_to_motion(motion: BinarySensorEntity, fan: SwitchEntity) -> None:
    if motion.is_on():
        fan.turn_on()
    elif motion.is_off():
        fan.turn_off()


def build_fan_automation(
    config: "FanConfig",
    registry: "EntityRegistry",
    scheduler: "Scheduler",
    identities: Optional[IdentityRegistry] = None,
) -> FanAutomation:
    """
    Build a fan automation from configuration.

    Raises:
        ConfigurationError: If a referenced entity is missing or of the wrong type
    """
    identities = identities or IdentityRegistry()
    master = registry.require(config.master_switch, SwitchEntity)
    motion = registry.require(config.motion_sensor, BinarySensorEntity)
    fans = [registry.require(fan_id, SwitchEntity) for fan_id in config.fans]
    main_fan = fans[0]

    persistent: List[RuleProducer] = [
        lambda: reactivate_when_idle(motion, master, scheduler, config.reactivate_after_seconds)
    ]
    if config.follow_manual_fan:
        persistent.append(lambda: master_switch_follows_manual_fan(main_fan, master, identities))

    return FanAutomation(
        config.id,
        master,
        motion,
        fans,
        persistent_rules=persistent,
        toggleable_rules=[
            lambda: fans_follow_motion(motion, fans, scheduler, config.off_after_seconds)
        ],
        on_enabled=[lambda: sync_main_fan_to_motion(motion, main_fan)],
    )
