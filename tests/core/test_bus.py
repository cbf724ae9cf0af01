"""Tests for the run-to-completion Event Bus."""

import logging

import pytest

from home_automation.core.bus import EventBus, EventFilter
from home_automation.core.states import StateChange


@pytest.fixture
def bus():
    """Create an event bus."""
    return EventBus()


def make_change(entity_id: str, previous, current, actor_id=None) -> StateChange:
    """Helper to create state changes."""
    return StateChange(entity_id=entity_id, previous=previous, current=current, actor_id=actor_id)


class TestEventFilter:
    """Tests for EventFilter matching."""

    def test_empty_filter_matches_everything(self):
        """Test that a default filter matches any change."""
        assert EventFilter().matches(make_change("light.kitchen", "off", "on"))

    def test_entity_filter(self):
        """Test filtering by entity ID."""
        event_filter = EventFilter(entity_id="light.kitchen")
        assert event_filter.matches(make_change("light.kitchen", "off", "on"))
        assert not event_filter.matches(make_change("light.hall", "off", "on"))

    def test_state_filters_ignore_case(self):
        """Test to_state/from_state are case-insensitive."""
        event_filter = EventFilter(to_state="ON", from_state="off")
        assert event_filter.matches(make_change("light.kitchen", "OFF", "on"))
        assert not event_filter.matches(make_change("light.kitchen", "unavailable", "on"))
        assert not event_filter.matches(make_change("light.kitchen", "off", "off"))


class TestSubscribe:
    """Tests for subscribing and unsubscribing."""

    def test_handler_receives_matching_changes(self, bus):
        """Test that a filtered handler only sees its entity."""
        received = []
        bus.subscribe(received.append, EventFilter(entity_id="light.kitchen"))

        bus.publish(make_change("light.kitchen", "off", "on"))
        bus.publish(make_change("light.hall", "off", "on"))

        assert [c.entity_id for c in received] == ["light.kitchen"]

    def test_dispose_stops_delivery(self, bus):
        """Test that a disposed subscription receives nothing."""
        received = []
        subscription = bus.subscribe(received.append)
        subscription.dispose()

        bus.publish(make_change("light.kitchen", "off", "on"))

        assert received == []
        assert bus.handler_count == 0
        assert not subscription.active

    def test_subscription_handle(self, bus):
        """Test that subscribe() hands out one live handle named after the handler."""

        def kitchen_rule(change):
            pass

        subscription = bus.subscribe(kitchen_rule)

        assert subscription.name == "kitchen_rule"
        assert subscription.active
        assert bus.handler_count == 1

        subscription.dispose()
        subscription.dispose()
        assert bus.handler_count == 0

    def test_unsubscribe_by_handler(self, bus):
        """Test unsubscribe() removes every registration of a handler."""
        received = []
        bus.subscribe(received.append, EventFilter(entity_id="light.kitchen"))
        bus.subscribe(received.append, EventFilter(entity_id="light.hall"))

        bus.unsubscribe(received.append)
        bus.publish(make_change("light.kitchen", "off", "on"))

        assert received == []
        assert bus.handler_count == 0


class TestRunToCompletion:
    """Tests for FIFO, run-to-completion dispatch."""

    def test_publish_from_handler_is_queued(self, bus):
        """Test that a nested publish runs after the current delivery completes."""
        order = []

        def first(change):
            order.append(f"first:{change.current}")
            if change.current == "on":
                bus.publish(make_change("light.kitchen", "on", "off"))
            order.append(f"first-done:{change.current}")

        def second(change):
            order.append(f"second:{change.current}")

        bus.subscribe(first)
        bus.subscribe(second)
        bus.publish(make_change("light.kitchen", "off", "on"))

        assert order == [
            "first:on",
            "first-done:on",
            "second:on",
            "first:off",
            "first-done:off",
            "second:off",
        ]
        assert bus.pending == 0

    def test_disposed_during_dispatch_is_skipped(self, bus):
        """Test that disposing a later subscriber in a handler prevents its delivery."""
        received = []
        holder = {}

        def disposer(change):
            holder["victim"].dispose()

        bus.subscribe(disposer)
        holder["victim"] = bus.subscribe(received.append)

        bus.publish(make_change("light.kitchen", "off", "on"))

        assert received == []

    def test_queued_events_skip_disposed_subscribers(self, bus):
        """Test that events queued before a dispose are not delivered after it."""
        received = []
        victim = bus.subscribe(received.append, EventFilter(entity_id="light.hall"))

        def kitchen_handler(change):
            bus.publish(make_change("light.hall", "off", "on"))
            victim.dispose()

        bus.subscribe(kitchen_handler, EventFilter(entity_id="light.kitchen"))
        bus.publish(make_change("light.kitchen", "off", "on"))

        assert received == []

    def test_post_runs_in_fifo_order(self, bus):
        """Test that posted callbacks share the queue with changes."""
        order = []

        def handler(change):
            bus.post(lambda: order.append("posted"))
            bus.publish(make_change("light.hall", "off", "on"))
            order.append(f"handler:{change.entity_id}")

        bus.subscribe(handler, EventFilter(entity_id="light.kitchen"))
        bus.subscribe(lambda c: order.append("hall"), EventFilter(entity_id="light.hall"))
        bus.publish(make_change("light.kitchen", "off", "on"))

        assert order == ["handler:light.kitchen", "posted", "hall"]


class TestErrorIsolation:
    """Tests for handler exception isolation."""

    def test_failing_handler_does_not_block_others(self, bus, caplog):
        """Test that one handler raising doesn't stop the next."""
        received = []

        def broken(change):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        with caplog.at_level(logging.ERROR):
            bus.publish(make_change("light.kitchen", "off", "on"))

        assert len(received) == 1
        assert "boom" in caplog.text

    def test_failing_post_does_not_block_queue(self, bus):
        """Test that a failing posted callback is logged and skipped."""
        ran = []

        def broken():
            raise RuntimeError("boom")

        bus.post(broken)
        bus.post(lambda: ran.append(True))

        assert ran == [True]
        assert bus.pending == 0
