"""
Immutable state management for the round state machine.

This package provides immutable state classes and pure transition functions
for playing a round in a predictable and testable way.
"""

from spotjack.state.models import (
    EventType,
    GameContext,
    GameEvent,
    HandResult,
    HandState,
    RoundStage,
    SpotState,
)

from spotjack.state.transitions import StateTransitionEngine

__all__ = [
    "EventType",
    "GameContext",
    "GameEvent",
    "HandResult",
    "HandState",
    "RoundStage",
    "SpotState",
    "StateTransitionEngine",
]
