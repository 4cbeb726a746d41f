"""
Event system for the spotjack engine.

The round state machine publishes what happens during a round (cards dealt,
hands settled, bankroll changes) on an event bus. Presentation layers and
statistics collectors subscribe to it; they observe the round but never take
part in a transition.
"""

import bisect
import itertools
import logging
import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Union

logger = logging.getLogger("spotjack.events")


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class EventEmitter:
    """
    Publishes round events to subscribers in priority order.

    Subscribers with a higher priority are called first; subscribers of equal
    priority are called in the order they subscribed. A subscriber that raises
    is logged and skipped, so observers can never break a transition.
    """

    def __init__(self):
        # event name -> sorted list of (-priority, sequence, callback)
        self._subscribers = defaultdict(list)
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    @staticmethod
    def _name(event_type: Union[str, Enum]) -> str:
        return event_type.name if isinstance(event_type, Enum) else event_type

    def on(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Called with the event data dictionary
            priority: Priority level for this subscriber

        Returns:
            Function that removes this subscription
        """
        name = self._name(event_type)
        entry = (-priority.value, next(self._sequence), callback)
        with self._lock:
            bisect.insort(self._subscribers[name], entry)

        def unsubscribe():
            with self._lock:
                if entry in self._subscribers[name]:
                    self._subscribers[name].remove(entry)

        return unsubscribe

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        name = self._name(event_type)
        with self._lock:
            callbacks = [callback for _, _, callback in self._subscribers.get(name, ())]

        # Called outside the lock so a subscriber may subscribe or emit
        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error in event handler for {name}: {e}", exc_info=True)


class EventBus:
    """Process-wide event emitter shared by the state machine and its observers."""

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance


class EngineEventType(Enum):
    """
    Event types published by the round state machine and the table engine.
    """

    # Round lifecycle
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    STATE_CHANGED = "state_changed"
    SHUFFLE = "shuffle"

    # Betting
    PLAYER_BET = "player_bet"
    BETS_CLEARED = "bets_cleared"

    # Cards
    CARD_DEALT = "card_dealt"
    CARD_REVEALED = "card_revealed"

    # Player play
    PLAYER_ACTION = "player_action"
    HAND_SPLIT = "hand_split"
    HAND_BUSTED = "hand_busted"
    HAND_RESULT = "hand_result"
    TRIPLE_SEVENS_BONUS = "triple_sevens_bonus"

    # Side bets
    SIDE_BET_RESULT = "side_bet_result"

    # Offers when the dealer shows an ace
    EVEN_MONEY_DECISION = "even_money_decision"
    INSURANCE_OFFERED = "insurance_offered"
    INSURANCE_DECISION = "insurance_decision"

    # Dealer
    DEALER_ACTION = "dealer_action"

    # Money
    BANKROLL_UPDATED = "bankroll_updated"
