"""
spotjack: a seven-spot casino blackjack rules engine.

The round is driven by a pure state machine (`spotjack.state`); the
`BlackjackTable` facade in `spotjack.engine` holds the current state for a
host and publishes changes on the event bus.
"""

from spotjack.engine import BlackjackTable
from spotjack.state import EventType, GameEvent, RoundStage

__version__ = "0.1.0"

__all__ = ["BlackjackTable", "EventType", "GameEvent", "RoundStage"]
