"""
Tests for the event system.

This module contains tests for the EventEmitter and EventBus classes
to ensure they provide the expected behavior for event handling.
"""

import logging
from unittest.mock import MagicMock

from spotjack.events import EventEmitter, EventBus, EngineEventType, EventPriority


def test_on_with_string_event_type():
    """Test subscribing to an event with a string event type."""
    emitter = EventEmitter()
    callback = MagicMock()

    unsubscribe = emitter.on("test_event", callback)

    test_data = {"value": "test"}
    emitter.emit("test_event", test_data)
    callback.assert_called_once_with(test_data)

    # Unsubscribe and emit again
    unsubscribe()
    emitter.emit("test_event", {"value": "test2"})
    callback.assert_called_once()


def test_on_with_enum_event_type():
    """Test subscribing to an event with an enum event type."""
    emitter = EventEmitter()
    callback = MagicMock()

    emitter.on(EngineEventType.ROUND_STARTED, callback)
    emitter.emit(EngineEventType.ROUND_STARTED, {"round_number": 1})

    callback.assert_called_once_with({"round_number": 1})


def test_enum_and_name_are_the_same_event():
    emitter = EventEmitter()
    callback = MagicMock()

    emitter.on(EngineEventType.SHUFFLE, callback)
    emitter.emit("SHUFFLE", {})

    callback.assert_called_once_with({})


def test_priority_ordering():
    """Test that handlers are called in priority order."""
    emitter = EventEmitter()
    call_order = []

    emitter.on("evt", lambda data: call_order.append("low"), EventPriority.LOW)
    emitter.on("evt", lambda data: call_order.append("critical"), EventPriority.CRITICAL)
    emitter.on("evt", lambda data: call_order.append("normal"), EventPriority.NORMAL)
    emitter.on("evt", lambda data: call_order.append("high"), EventPriority.HIGH)
    emitter.on("evt", lambda data: call_order.append("normal2"), EventPriority.NORMAL)

    emitter.emit("evt", {})

    assert call_order == ["critical", "high", "normal", "normal2", "low"]


def test_unsubscribe_removes_only_that_handler():
    emitter = EventEmitter()
    first = MagicMock()
    second = MagicMock()

    unsubscribe_first = emitter.on("evt", first)
    emitter.on("evt", second)
    unsubscribe_first()
    emitter.emit("evt", {})

    first.assert_not_called()
    second.assert_called_once_with({})


def test_failing_handler_is_logged_and_others_still_run(caplog):
    emitter = EventEmitter()
    after = MagicMock()

    def broken(data):
        raise ValueError("boom")

    emitter.on("evt", broken, EventPriority.HIGH)
    emitter.on("evt", after)

    with caplog.at_level(logging.ERROR, logger="spotjack.events"):
        emitter.emit("evt", {})

    after.assert_called_once_with({})
    assert "boom" in caplog.text


def test_event_bus_singleton():
    """Test that EventBus returns the same instance."""
    bus1 = EventBus.get_instance()
    bus2 = EventBus.get_instance()
    assert bus1 is bus2
    assert isinstance(bus1, EventEmitter)


def test_unsubscribe_twice_is_harmless():
    emitter = EventEmitter()
    callback = MagicMock()

    unsubscribe = emitter.on("evt", callback)
    unsubscribe()
    unsubscribe()
    emitter.emit("evt", {})

    callback.assert_not_called()


def test_emit_without_subscribers():
    EventEmitter().emit(EngineEventType.ROUND_ENDED, {"round_number": 1})


def test_subscriber_may_subscribe_during_emit():
    emitter = EventEmitter()
    late = MagicMock()

    emitter.on("evt", lambda data: emitter.on("evt", late))
    emitter.emit("evt", {})
    late.assert_not_called()

    emitter.emit("evt", {"n": 2})
    late.assert_called_once_with({"n": 2})
