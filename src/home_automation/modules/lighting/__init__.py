"""
Lighting module for home-automation.

Motion-driven lights gated by a master switch, with optional dim-then-off
and presence sensor delay adaptation.

Common Use Cases:
- Turn lights on with motion, off (or dim, then off) without it
- Stop automating while someone operates the light by hand
- Re-enable automation after the room has been quiet for a while
"""

from .automation import MotionLightAutomation, build_motion_light
from .presets import (
    dimming_lights_follow_motion,
    lights_follow_motion,
    master_switch_follows_manual_light,
    reactivate_after_idle,
    sensor_delay_rules,
    sync_light_to_motion,
)

__all__ = [
    "MotionLightAutomation",
    "build_motion_light",
    "dimming_lights_follow_motion",
    "lights_follow_motion",
    "master_switch_follows_manual_light",
    "reactivate_after_idle",
    "sensor_delay_rules",
    "sync_light_to_motion",
]
