"""
Table engine for spotjack.

`BlackjackTable` is the boundary a presentation layer talks to. It owns the
current ``(stage, context)`` pair, feeds input events through the pure
`StateTransitionEngine` and swaps in the result in one step, so a host only
ever observes states that wait for input.
"""

import logging
import random
from typing import Any, Dict, List, Optional

from spotjack.blackjack.constants import INITIAL_BANKROLL, SideBetType
from spotjack.events import EngineEventType, EventBus
from spotjack.state import (
    EventType,
    GameContext,
    GameEvent,
    RoundStage,
    StateTransitionEngine,
)

logger = logging.getLogger("spotjack.engine")


class BlackjackTable:
    """
    A single-player, seven-spot blackjack table.

    Configuration keys (all optional):
        initial_bankroll: Starting bankroll (default 2500)
        seed: Seed for the shuffle random source
        rng: A ready ``random.Random`` to shuffle with; takes precedence over seed
    """

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize the table with a fresh shoe and empty spots.

        Args:
            config: Configuration options for the table
        """
        self.config = config or {}
        self.event_bus = EventBus.get_instance()

        self.rng = self.config.get("rng")
        if self.rng is None:
            self.rng = random.Random(self.config.get("seed"))

        bankroll = self.config.get("initial_bankroll", INITIAL_BANKROLL)
        if bankroll < 0:
            raise ValueError("initial_bankroll must not be negative")

        self._stage = RoundStage.BETTING
        self._context = StateTransitionEngine.initial_context(
            rng=self.rng, bankroll=bankroll
        )
        logger.info("Table opened with bankroll %s", bankroll)

    @property
    def stage(self) -> RoundStage:
        return self._stage

    @property
    def context(self) -> GameContext:
        return self._context

    def send(self, event: GameEvent) -> bool:
        """
        Apply an input event.

        Args:
            event: The event to apply

        Returns:
            True if the event changed the table, False if it was ignored
        """
        stage, context = StateTransitionEngine.transition(
            self._stage, self._context, event, self.rng
        )
        if stage == self._stage and context == self._context:
            return False

        self._stage, self._context = stage, context
        self.event_bus.emit(EngineEventType.STATE_CHANGED, self.snapshot())
        return True

    def snapshot(self) -> Dict[str, Any]:
        """
        Return the table as plain data.

        The shoe is reported as a card count and the dealer's hole card is
        hidden until it is revealed.
        """
        return {"stage": self._stage.value, **self._context.to_dict()}

    def valid_events(self) -> List[EventType]:
        return StateTransitionEngine.valid_events(self._stage, self._context)

    # Convenience wrappers around send()

    def select_spot(self, spot_index: int) -> bool:
        return self.send(GameEvent(EventType.SELECT_SPOT, spot_index=spot_index))

    def place_bet(self, amount: float, spot_index: Optional[int] = None) -> bool:
        """
        Add chips to a spot's main bet.

        Args:
            amount: Chip amount
            spot_index: Spot to bet on; defaults to the currently selected spot

        Returns:
            True if the bet was accepted
        """
        if spot_index is not None:
            self.select_spot(spot_index)
            if self._context.betting_spot_index != spot_index:
                return False
        return self.send(GameEvent(EventType.ADD_BET, amount=amount))

    def place_side_bet(
        self, bet_type: SideBetType, amount: float, spot_index: Optional[int] = None
    ) -> bool:
        if spot_index is not None:
            self.select_spot(spot_index)
            if self._context.betting_spot_index != spot_index:
                return False
        return self.send(
            GameEvent(EventType.ADD_SIDE_BET, amount=amount, bet_type=bet_type)
        )

    def double_bet(self) -> bool:
        return self.send(GameEvent(EventType.DOUBLE_BET))

    def clear_bet(self) -> bool:
        return self.send(GameEvent(EventType.CLEAR_BET))

    def clear_all_bets(self) -> bool:
        return self.send(GameEvent(EventType.CLEAR_ALL_BETS))

    def rebet(self) -> bool:
        return self.send(GameEvent(EventType.REBET))

    def deal(self) -> bool:
        return self.send(GameEvent(EventType.DEAL))

    def take_even_money(self) -> bool:
        return self.send(GameEvent(EventType.TAKE_EVEN_MONEY))

    def decline_even_money(self) -> bool:
        return self.send(GameEvent(EventType.DECLINE_EVEN_MONEY))

    def take_insurance(self) -> bool:
        return self.send(GameEvent(EventType.TAKE_INSURANCE))

    def decline_insurance(self) -> bool:
        return self.send(GameEvent(EventType.DECLINE_INSURANCE))

    def hit(self) -> bool:
        return self.send(GameEvent(EventType.HIT))

    def stand(self) -> bool:
        return self.send(GameEvent(EventType.STAND))

    def double_down(self) -> bool:
        return self.send(GameEvent(EventType.DOUBLE))

    def split(self) -> bool:
        return self.send(GameEvent(EventType.SPLIT))

    def surrender(self) -> bool:
        return self.send(GameEvent(EventType.SURRENDER))

    def new_round(self) -> bool:
        return self.send(GameEvent(EventType.NEW_ROUND))
