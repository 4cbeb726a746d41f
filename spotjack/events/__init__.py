"""
Event system for the spotjack engine.

This package provides the event bus that presentation layers and statistics
collectors subscribe to.
"""

from spotjack.events.emitter import (
    EventEmitter,
    EventBus,
    EventPriority,
    EngineEventType,
)

__all__ = ["EventEmitter", "EventBus", "EventPriority", "EngineEventType"]
