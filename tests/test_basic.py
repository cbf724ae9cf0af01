"""
Basic smoke tests for home-automation core components.
"""

from home_automation import (
    AutomationManager,
    ConfigurationError,
    EntityRegistry,
    EventBus,
    StateChange,
    SubscriptionSet,
)
from home_automation.core.adapter import MockPlatformAdapter
from home_automation.core.entity import BinarySensorEntity, LightEntity


def test_state_change_creation():
    """Test basic StateChange creation and helpers."""
    change = StateChange(entity_id="light.kitchen", previous="off", current="ON")
    assert change.entity_id == "light.kitchen"
    assert change.is_on
    assert change.was_off
    assert change.changed
    assert change.actor_id is None
    assert change.attributes == {}


def test_registry_creates_entities():
    """Test EntityRegistry entity creation."""
    bus = EventBus()
    registry = EntityRegistry(bus, MockPlatformAdapter())

    motion = registry.create(BinarySensorEntity, "kitchen_motion", state="off")
    assert motion.entity_id == "binary_sensor.kitchen_motion"
    assert motion.is_clear()

    # Same ID, same type returns the existing entity
    assert registry.create(BinarySensorEntity, "kitchen_motion") is motion
    assert registry.get("binary_sensor.kitchen_motion") is motion


def test_state_updates_reach_subscribers():
    """Test that host state updates are published on the bus."""
    bus = EventBus()
    registry = EntityRegistry(bus, MockPlatformAdapter())
    light = registry.create(LightEntity, "kitchen", state="off")

    received = []
    light.subscribe(received.append)
    registry.update_state("light.kitchen", "on", actor_id="user.alice")

    assert len(received) == 1
    assert received[0].previous == "off"
    assert received[0].current == "on"
    assert received[0].actor_id == "user.alice"
    assert light.is_on()


def test_light_commands_go_to_platform():
    """Test that actuator commands are routed to the adapter."""
    bus = EventBus()
    platform = MockPlatformAdapter()
    registry = EntityRegistry(bus, platform)
    light = registry.create(LightEntity, "kitchen")

    light.turn_on(brightness_pct=80)
    light.turn_off()

    assert platform.get_service_calls() == [
        ("light", "turn_on", "light.kitchen", {"brightness_pct": 80}),
        ("light", "turn_off", "light.kitchen", None),
    ]


def test_subscription_set_dispose():
    """Test that disposing a set releases every member."""
    bus = EventBus()
    subs = SubscriptionSet([bus.subscribe(lambda c: None), bus.subscribe(lambda c: None)])
    assert len(subs) == 2
    assert bus.handler_count == 2

    subs.dispose()
    assert len(subs) == 0
    assert bus.handler_count == 0


def test_manager_rejects_duplicates():
    """Test that automation IDs are unique."""
    from home_automation.modules.automation import ToggleableAutomation

    manager = AutomationManager()
    manager.add(ToggleableAutomation("kitchen"))
    try:
        manager.add(ToggleableAutomation("kitchen"))
        assert False, "Expected ConfigurationError"
    except ConfigurationError:
        pass
