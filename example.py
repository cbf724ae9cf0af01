#!/usr/bin/env python3
"""
Quick example demonstrating home-automation basic usage.

Run with: PYTHONPATH=src python3 example.py
"""

import logging

from home_automation.config import AutomationConfig
from home_automation.core.adapter import MockPlatformAdapter
from home_automation.core.bus import EventBus
from home_automation.core.entity import (
    BinarySensorEntity,
    InputBooleanEntity,
    LightEntity,
    NumberEntity,
)
from home_automation.core.manager import AutomationManager
from home_automation.core.registry import EntityRegistry
from home_automation.core.scheduler import ManualScheduler

logging.basicConfig(level=logging.INFO, format="   %(name)s: %(message)s")

print("=" * 60)
print("home-automation Example")
print("=" * 60)

# 1. Kernel components
print("\n1. Creating kernel components...")
bus = EventBus()
scheduler = ManualScheduler(bus)
platform = MockPlatformAdapter(echo_state=True)
registry = EntityRegistry(bus, platform)
platform.attach_registry(registry)
print("   ✓ EventBus, ManualScheduler and EntityRegistry created")

# 2. Register the kitchen devices
print("\n2. Registering entities...")
master = registry.create(InputBooleanEntity, "kitchen_automation", state="on")
motion = registry.create(BinarySensorEntity, "kitchen_motion", state="off")
light = registry.create(LightEntity, "kitchen", state="off")
delay = registry.device_entity(NumberEntity, "kitchen_presence", "still_target_delay")
delay.update_state("5")
for entity in registry.all_entities():
    print(f"   ✓ {entity}")

# 3. Build automations from configuration
print("\n3. Building automations...")
config = AutomationConfig.from_dict(
    {
        "version": 1,
        "identities": {"manual_users": ["user.alice"], "names": {"user.alice": "Alice"}},
        "lights": [
            {
                "id": "kitchen_lights",
                "master_switch": master.entity_id,
                "motion_sensor": motion.entity_id,
                "light": light.entity_id,
                "sensor_delay": delay.entity_id,
                "dimming": {"brightness_pct": 80, "delay_seconds": 5},
                "reactivate_after_seconds": 3600,
            }
        ],
    }
)
manager = AutomationManager.from_config(config, registry, scheduler)
manager.start_all()
kitchen = manager.get("kitchen_lights")
print(f"   ✓ {kitchen}")

# 4. Motion comes and goes
print("\n4. Simulating motion...")
registry.update_state(motion.entity_id, "on")
print(f"   ✓ Motion on  -> light {light.state} at {light.attributes.get('brightness_pct')}%")

registry.update_state(motion.entity_id, "off")
print(f"   ✓ Motion off -> light {light.state} at {light.attributes.get('brightness_pct')}%")

scheduler.advance(5)
print(f"   ✓ 5s later   -> light {light.state}")

# 5. Someone overrides the light by hand
print("\n5. Manual override...")
registry.update_state(light.entity_id, "on", actor_id="user.alice")
print(f"   ✓ Light turned on by hand without motion -> master {master.state}")
print(f"   ✓ Automation enabled: {kitchen.is_enabled}")

scheduler.advance(3600)
print(f"   ✓ An hour without motion -> master {master.state}")

# 6. Shut down
print("\n6. Stopping...")
manager.stop_all()
print(f"   ✓ Calls issued: {len(platform.get_service_calls())}")

print("\n" + "=" * 60)
print("Example complete!")
print("=" * 60)
