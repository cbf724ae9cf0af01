"""
home-automation: a reactive home-automation engine.

This library provides the mechanics shared by every room's rule set:
- Rule groups gated by a master switch (persistent vs. toggleable rules)
- Temporal hold filters ("motion off for 15 minutes")
- Dim-then-off light control with cancellable delayed actions
- A single-threaded, run-to-completion Event Bus
"""

from home_automation.core.bus import EventBus, EventFilter
from home_automation.core.states import StateChange
from home_automation.core.subscriptions import Subscription, SubscriptionSet
from home_automation.core.registry import EntityRegistry
from home_automation.core.manager import AutomationManager
from home_automation.errors import AutomationError, ConfigurationError, TransientActuatorError

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "EventFilter",
    "StateChange",
    "Subscription",
    "SubscriptionSet",
    "EntityRegistry",
    "AutomationManager",
    "AutomationError",
    "ConfigurationError",
    "TransientActuatorError",
]
