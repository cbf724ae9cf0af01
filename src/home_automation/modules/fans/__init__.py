"""
Fan module for home-automation.

Fans follow motion while automation is enabled; manual fan use drives the
master switch.
"""

from .automation import (
    FanAutomation,
    build_fan_automation,
    fans_follow_motion,
    master_switch_follows_manual_fan,
    reactivate_when_idle,
)

__all__ = [
    "FanAutomation",
    "build_fan_automation",
    "fans_follow_motion",
    "master_switch_follows_manual_fan",
    "reactivate_when_idle",
]
