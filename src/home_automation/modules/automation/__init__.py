"""
Generic automation building blocks.

Provides the pieces every domain module composes:
- ToggleableAutomation: persistent + toggleable rule groups gated by a master switch
- HoldFilter and the on_change() trigger helpers
- DimmingLightController: dim now, turn off later unless interrupted

Architecture:
    Domain modules (lighting, fans) are rule producers plus a builder that
    wires them into a ToggleableAutomation.

    ┌─────────────────────────────────────────────┐
    │        Domain Modules (lighting, fans)      │
    │                     │                       │
    │                     ▼                       │
    │          ┌─────────────────────┐            │
    │          │ ToggleableAutomation│            │
    │          └─────────────────────┘            │
    └─────────────────────────────────────────────┘
"""

from .toggleable import AutomationState, ToggleableAutomation, RuleProducer
from .dimming import DimmingLightController
from .triggers import (
    DoubleClickDetector,
    FlickerDetector,
    HoldFilter,
    on_change,
    on_double_click,
    on_flickering,
    on_turned_off,
    on_turned_on,
    on_unavailable,
)

__all__ = [
    "AutomationState",
    "ToggleableAutomation",
    "RuleProducer",
    "DimmingLightController",
    "DoubleClickDetector",
    "FlickerDetector",
    "HoldFilter",
    "on_change",
    "on_double_click",
    "on_flickering",
    "on_turned_off",
    "on_turned_on",
    "on_unavailable",
]
