"""
Core components of the home-automation engine.

This package contains:
- states: state values and the StateChange record
- subscriptions: Subscription and SubscriptionSet
- bus: run-to-completion Event Bus
- scheduler: Scheduler abstraction and ScheduledAction tokens
- entity / registry: device state sources, actuators and their registry
- adapter: platform adapter for actuator commands
- identity: actor classification
- manager: AutomationManager
"""

from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription, SubscriptionSet
from home_automation.core.bus import EventBus, EventFilter
from home_automation.core.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledAction,
    Scheduler,
)
from home_automation.core.entity import (
    BinarySensorEntity,
    ButtonEntity,
    Entity,
    FanEntity,
    InputBooleanEntity,
    LightEntity,
    NumberEntity,
    SensorEntity,
    SwitchEntity,
)
from home_automation.core.registry import EntityRegistry
from home_automation.core.adapter import PlatformAdapter, MockPlatformAdapter
from home_automation.core.identity import IdentityRegistry
from home_automation.core.manager import AutomationManager

__all__ = [
    "StateChange",
    "Subscription",
    "SubscriptionSet",
    "EventBus",
    "EventFilter",
    "AsyncioScheduler",
    "ManualScheduler",
    "ScheduledAction",
    "Scheduler",
    "BinarySensorEntity",
    "ButtonEntity",
    "Entity",
    "FanEntity",
    "InputBooleanEntity",
    "LightEntity",
    "NumberEntity",
    "SensorEntity",
    "SwitchEntity",
    "EntityRegistry",
    "PlatformAdapter",
    "MockPlatformAdapter",
    "IdentityRegistry",
    "AutomationManager",
]
