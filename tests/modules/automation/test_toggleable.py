"""Tests for the ToggleableAutomation lifecycle."""

import pytest

from home_automation.core.adapter import MockPlatformAdapter
from home_automation.core.bus import EventBus
from home_automation.core.entity import BinarySensorEntity, InputBooleanEntity, LightEntity
from home_automation.core.registry import EntityRegistry
from home_automation.core.subscriptions import Subscription
from home_automation.errors import ConfigurationError
from home_automation.modules.automation import (
    AutomationState,
    ToggleableAutomation,
    on_turned_off,
    on_turned_on,
)


@pytest.fixture
def bus():
    """Create an event bus."""
    return EventBus()


@pytest.fixture
def platform():
    """Create a mock platform adapter."""
    return MockPlatformAdapter()


@pytest.fixture
def registry(bus, platform):
    """Create an entity registry."""
    return EntityRegistry(bus, platform)


@pytest.fixture
def master(registry):
    """Create a master toggle that starts on."""
    return registry.create(InputBooleanEntity, "kitchen_automation", state="on")


@pytest.fixture
def motion(registry):
    return registry.create(BinarySensorEntity, "kitchen_motion", state="off")


@pytest.fixture
def light(registry):
    return registry.create(LightEntity, "kitchen", state="off")


class ProducerLog:
    """Toggleable rule producer that counts how often it runs."""

    def __init__(self, motion, light):
        self.motion = motion
        self.light = light
        self.runs = 0

    def __call__(self):
        self.runs += 1
        return [
            on_turned_on(self.motion, lambda change: self.light.turn_on()),
            on_turned_off(self.motion, lambda change: self.light.turn_off()),
        ]


def light_commands(platform, light):
    """Helper to list service names sent to a light."""
    return [call[1] for call in platform.get_service_calls(light.entity_id)]


class TestConstruction:
    """Tests for configuration checks."""

    def test_toggleable_rules_need_master(self, motion, light):
        """Test that toggleable rules without a master switch fail fast."""
        with pytest.raises(ConfigurationError):
            ToggleableAutomation("kitchen", None, toggleable_rules=[ProducerLog(motion, light)])

    def test_id_required(self):
        with pytest.raises(ConfigurationError):
            ToggleableAutomation("")

    def test_initial_state(self, master):
        automation = ToggleableAutomation("kitchen", master)
        assert automation.state is AutomationState.DISABLED
        assert not automation.started


class TestStart:
    """Tests for start()."""

    def test_start_with_master_on_enables(self, master, motion, light):
        """Test that start() evaluates the current toggle state synchronously."""
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])

        automation.start()

        assert automation.is_enabled
        assert producer.runs == 1
        assert automation.toggleable_subscription_count == 2

    @pytest.mark.parametrize("state", ["off", "unavailable", "unknown", None])
    def test_start_with_master_not_on_stays_disabled(self, registry, motion, light, state):
        master = registry.create(InputBooleanEntity, "gate", state=state)
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])

        automation.start()

        assert automation.state is AutomationState.DISABLED
        assert producer.runs == 0
        assert automation.toggleable_subscriptions is None

    def test_start_is_idempotent(self, master, motion, light):
        """Test that a second start() registers nothing new."""
        persistent_runs = []
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation(
            "kitchen",
            master,
            persistent_rules=[lambda: persistent_runs.append(1) or [Subscription()]],
            toggleable_rules=[producer],
        )

        automation.start()
        automation.start()

        assert persistent_runs == [1]
        assert producer.runs == 1
        # persistent rule + master switch watcher
        assert automation.persistent_subscription_count == 2

    def test_start_reconciles(self, master, motion, light, platform):
        """Test that entering ENABLED runs the reconcile callbacks."""
        reconciled = []
        automation = ToggleableAutomation(
            "kitchen",
            master,
            toggleable_rules=[ProducerLog(motion, light)],
            on_enabled=[lambda: reconciled.append(automation.is_enabled)],
        )

        automation.start()

        assert reconciled == [True]

    def test_failing_persistent_producer(self, master, bus):
        """Test that a failing producer releases what was registered and propagates."""

        def broken():
            raise RuntimeError("bad rule")

        automation = ToggleableAutomation(
            "kitchen",
            master,
            persistent_rules=[lambda: [bus.subscribe(lambda change: None)], broken],
        )

        with pytest.raises(RuntimeError):
            automation.start()

        assert not automation.started
        assert bus.handler_count == 0


class TestEnableDisable:
    """Tests for master-switch driven transitions."""

    def test_idempotent_enable(self, master, motion, light):
        """Test that enabling twice keeps one set with the same count."""
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])
        automation.start()
        first_set = automation.toggleable_subscriptions
        count = automation.toggleable_subscription_count

        automation.enable()
        automation.apply_master_state("on")

        assert automation.toggleable_subscriptions is first_set
        assert automation.toggleable_subscription_count == count
        assert producer.runs == 1

    def test_master_on_event_repeated(self, registry, master, motion, light):
        """Test that a repeated 'on' report does not duplicate registrations."""
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])
        automation.start()

        registry.update_state(master.entity_id, "on")

        assert producer.runs == 1
        assert automation.toggleable_subscription_count == 2

    def test_master_off_disables(self, registry, platform, master, motion, light):
        """Test that toggleable rules stop acting once the master turns off."""
        automation = ToggleableAutomation(
            "kitchen", master, toggleable_rules=[ProducerLog(motion, light)]
        )
        automation.start()

        registry.update_state(master.entity_id, "off")
        registry.update_state(motion.entity_id, "on")

        assert automation.state is AutomationState.DISABLED
        assert automation.toggleable_subscriptions is None
        assert light_commands(platform, light) == []

    @pytest.mark.parametrize("state", ["unavailable", "unknown"])
    def test_master_unusable_disables(self, registry, master, motion, light, state):
        automation = ToggleableAutomation(
            "kitchen", master, toggleable_rules=[ProducerLog(motion, light)]
        )
        automation.start()

        registry.update_state(master.entity_id, state)

        assert not automation.is_enabled

    def test_reenable_builds_fresh_set(self, registry, platform, master, motion, light):
        """Test off -> on registers the toggleable rules again and reconciles."""
        producer = ProducerLog(motion, light)
        reconciles = []
        automation = ToggleableAutomation(
            "kitchen",
            master,
            toggleable_rules=[producer],
            on_enabled=[lambda: reconciles.append(1)],
        )
        automation.start()
        old_set = automation.toggleable_subscriptions

        registry.update_state(master.entity_id, "off")
        registry.update_state(master.entity_id, "on")

        assert old_set.disposed
        assert automation.toggleable_subscriptions is not old_set
        assert producer.runs == 2
        assert len(reconciles) == 2

        registry.update_state(motion.entity_id, "on")
        assert light_commands(platform, light) == ["turn_on"]

    def test_on_disabled_callbacks(self, registry, master):
        disabled = []
        automation = ToggleableAutomation(
            "kitchen", master, on_disabled=[lambda: disabled.append(1)]
        )
        automation.start()

        registry.update_state(master.entity_id, "off")
        registry.update_state(master.entity_id, "off")

        assert disabled == [1]

    def test_persistent_rules_survive_disable(self, registry, platform, master, motion, light):
        """Test that persistent rules keep firing while disabled."""
        automation = ToggleableAutomation(
            "kitchen",
            master,
            persistent_rules=[lambda: [on_turned_on(motion, lambda change: light.toggle())]],
        )
        automation.start()

        registry.update_state(master.entity_id, "off")
        registry.update_state(motion.entity_id, "on")

        assert light_commands(platform, light) == ["toggle"]

    def test_failing_callback_is_isolated(self, master, caplog):
        """Test that a failing reconcile callback doesn't break the transition."""

        def broken():
            raise RuntimeError("reconcile failed")

        ran = []
        automation = ToggleableAutomation(
            "kitchen", master, on_enabled=[broken, lambda: ran.append(1)]
        )

        automation.start()

        assert automation.is_enabled
        assert ran == [1]
        assert "reconcile failed" in caplog.text

    def test_failing_toggleable_producer(self, master, bus, motion, light):
        """Test that a partial toggleable set is released when a producer fails."""

        def broken():
            raise RuntimeError("bad rule")

        automation = ToggleableAutomation(
            "kitchen", master, toggleable_rules=[ProducerLog(motion, light), broken]
        )
        handlers_before = bus.handler_count

        with pytest.raises(RuntimeError):
            automation.start()

        # Only the master switch watcher remains
        assert bus.handler_count == handlers_before + 1
        assert automation.toggleable_subscriptions is None
        assert not automation.is_enabled


class TestStop:
    """Tests for stop()."""

    def test_stop_releases_everything(self, bus, master, motion, light):
        cleaned = []
        automation = ToggleableAutomation(
            "kitchen",
            master,
            persistent_rules=[lambda: [on_turned_on(motion, lambda change: None)]],
            toggleable_rules=[ProducerLog(motion, light)],
            cleanup=[lambda: cleaned.append(1)],
        )
        automation.start()
        assert bus.handler_count == 4

        automation.stop()

        assert bus.handler_count == 0
        assert not automation.started
        assert automation.state is AutomationState.DISABLED
        assert cleaned == [1]

    def test_stop_is_idempotent(self, master):
        cleaned = []
        automation = ToggleableAutomation("kitchen", master, cleanup=[lambda: cleaned.append(1)])
        automation.stop()
        automation.start()
        automation.stop()
        automation.stop()
        assert cleaned == [1]

    def test_no_commands_after_stop(self, bus, registry, platform, master, motion, light):
        """Test that events queued before stop() are not acted on after it."""
        automation = ToggleableAutomation(
            "kitchen", master, toggleable_rules=[ProducerLog(motion, light)]
        )
        automation.start()

        def stopper(change):
            # Queue a motion event, then stop before it is delivered
            registry.update_state(motion.entity_id, "on")
            automation.stop()

        trigger = registry.create(BinarySensorEntity, "trigger", state="off")
        trigger.subscribe(stopper)
        registry.update_state("binary_sensor.trigger", "on")

        assert light_commands(platform, light) == []

    def test_master_changes_ignored_after_stop(self, registry, master, motion, light):
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])
        automation.start()
        automation.stop()

        registry.update_state(master.entity_id, "off")
        registry.update_state(master.entity_id, "on")

        assert producer.runs == 1
        assert not automation.is_enabled

    def test_restart_after_stop(self, master, motion, light):
        producer = ProducerLog(motion, light)
        automation = ToggleableAutomation("kitchen", master, toggleable_rules=[producer])
        automation.start()
        automation.stop()
        automation.start()

        assert automation.is_enabled
        assert producer.runs == 2
