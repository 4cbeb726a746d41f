"""
State transition engine for a blackjack round.

The round is an explicit state machine over `RoundStage`. `transition` takes
the current stage and context plus one input event and returns the next
stage and context; it never modifies its inputs. After the event has been
applied, the automatic (state-entry) transitions of the stages it leads
through are run until the machine reaches a stage that waits for input, so a
caller never sees a half-finished cascade.

Rules are kept in two tables. Event rules are keyed by stage and event type;
automatic rules by stage. Each entry is a list of ``(guard, effect)`` pairs
tried in priority order; the first whose guard passes is applied.
"""

import logging
import random
from typing import Callable, Dict, List, Optional, Tuple

from spotjack.blackjack.constants import INITIAL_BANKROLL, MIN_BET, SideBetType
from spotjack.common.shoe import create_shoe
from spotjack.state import actions
from spotjack.state import guards
from spotjack.state.models import EventType, GameContext, GameEvent, RoundStage

logger = logging.getLogger("spotjack.state")

Guard = Callable[[GameContext, Optional[GameEvent]], bool]
Effect = Callable[[GameContext, Optional[GameEvent]], Tuple[RoundStage, GameContext]]

# Longest legal cascade: seven spots of four hands each plus a dealer who
# draws to 17 fits comfortably below this.
MAX_CASCADE_STEPS = 100


def _always(context, event):
    return True


def _context_only(predicate):
    """Adapt a guard over the context alone to the rule signature."""
    return lambda context, event: predicate(context)


def _spots_only(predicate):
    return lambda context, event: predicate(context.spots)


def _go(stage: RoundStage, action=None) -> Effect:
    """Effect that applies ``action`` (context only) and moves to ``stage``."""

    def effect(context, event):
        if action is not None:
            context = action(context)
        return stage, context

    return effect


def advance_or_finish(context: GameContext, event=None) -> Tuple[RoundStage, GameContext]:
    """
    Move play on after the current hand is finished.

    Next hand in the same spot, else the next spot that needs action, else
    the dealer plays.
    """
    if context.current_spot.has_more_hands:
        return RoundStage.PLAYER_TURN, actions.move_to_next_hand(context)
    if guards.has_more_spots(context):
        return RoundStage.PLAYER_TURN, actions.move_to_next_spot(context)
    return RoundStage.DEALER_TURN, context


def _next_spot_or_dealer(context, event=None):
    if guards.has_more_spots(context):
        return RoundStage.PLAYER_TURN, actions.move_to_next_spot(context)
    return RoundStage.DEALER_TURN, context


def _stand(context, event):
    return advance_or_finish(actions.stand(context))


def _rebet_from_settlement(context):
    return actions.place_previous_bets(actions.reset_table(context))


EVENT_RULES: Dict[Tuple[RoundStage, EventType], List[Tuple[Guard, Effect]]] = {
    # Betting
    (RoundStage.BETTING, EventType.SELECT_SPOT): [
        (
            lambda context, event: guards.is_valid_spot_index(event.spot_index),
            lambda context, event: (
                RoundStage.BETTING,
                actions.select_spot(context, event.spot_index),
            ),
        ),
    ],
    (RoundStage.BETTING, EventType.ADD_BET): [
        (
            lambda context, event: guards.can_afford(context, event.amount),
            lambda context, event: (
                RoundStage.BETTING,
                actions.add_bet(context, event.amount),
            ),
        ),
    ],
    (RoundStage.BETTING, EventType.DOUBLE_BET): [
        (_context_only(guards.can_double_bet), _go(RoundStage.BETTING, actions.double_bet)),
    ],
    (RoundStage.BETTING, EventType.CLEAR_BET): [
        (
            lambda context, event: context.betting_spot.total_wager > 0,
            _go(RoundStage.BETTING, actions.clear_bet),
        ),
    ],
    (RoundStage.BETTING, EventType.CLEAR_ALL_BETS): [
        (
            lambda context, event: context.total_wagers > 0,
            _go(RoundStage.BETTING, actions.clear_all_bets),
        ),
    ],
    (RoundStage.BETTING, EventType.ADD_SIDE_BET): [
        (
            lambda context, event: (
                isinstance(event.bet_type, SideBetType)
                and guards.can_add_side_bet(context, event.amount)
            ),
            lambda context, event: (
                RoundStage.BETTING,
                actions.add_side_bet(context, event.bet_type, event.amount),
            ),
        ),
    ],
    (RoundStage.BETTING, EventType.REBET): [
        (
            lambda context, event: guards.can_rebet(context, refund=context.total_wagers),
            _go(RoundStage.BETTING, actions.place_previous_bets),
        ),
    ],
    (RoundStage.BETTING, EventType.DEAL): [
        (_context_only(guards.has_any_bet), _go(RoundStage.DEALING)),
    ],
    # Dealer shows an ace
    (RoundStage.EVEN_MONEY, EventType.TAKE_EVEN_MONEY): [
        (_always, _go(RoundStage.AFTER_EVEN_MONEY, actions.take_even_money)),
    ],
    (RoundStage.EVEN_MONEY, EventType.DECLINE_EVEN_MONEY): [
        (
            _spots_only(guards.all_active_spots_have_blackjack),
            _go(RoundStage.CHECK_BLACKJACKS, actions.decline_even_money),
        ),
        (_always, _go(RoundStage.INSURANCE, actions.decline_even_money)),
    ],
    (RoundStage.INSURANCE, EventType.TAKE_INSURANCE): [
        (
            _context_only(guards.can_afford_insurance),
            _go(RoundStage.CHECK_BLACKJACKS, actions.take_insurance),
        ),
    ],
    (RoundStage.INSURANCE, EventType.DECLINE_INSURANCE): [
        (_always, _go(RoundStage.CHECK_BLACKJACKS, actions.decline_insurance)),
    ],
    # Player turn
    (RoundStage.PLAYER_TURN, EventType.HIT): [
        (_context_only(guards.can_hit), _go(RoundStage.AFTER_HIT, actions.hit)),
    ],
    (RoundStage.PLAYER_TURN, EventType.STAND): [
        (_context_only(guards.can_stand), _stand),
    ],
    (RoundStage.PLAYER_TURN, EventType.DOUBLE): [
        (_context_only(guards.can_double), _go(RoundStage.AFTER_DOUBLE, actions.double_down)),
    ],
    (RoundStage.PLAYER_TURN, EventType.SPLIT): [
        (_context_only(guards.can_split), _go(RoundStage.PLAYER_TURN, actions.split)),
    ],
    (RoundStage.PLAYER_TURN, EventType.SURRENDER): [
        (_context_only(guards.can_surrender), _go(RoundStage.PLAYER_TURN, actions.surrender)),
    ],
    # Round over
    (RoundStage.SETTLEMENT, EventType.NEW_ROUND): [
        (_always, _go(RoundStage.BETTING, actions.reset_table)),
    ],
    (RoundStage.SETTLEMENT, EventType.REBET): [
        (_context_only(guards.can_rebet), _go(RoundStage.BETTING, _rebet_from_settlement)),
    ],
    (RoundStage.SETTLEMENT, EventType.DEAL): [
        (_context_only(guards.can_rebet), _go(RoundStage.DEALING, _rebet_from_settlement)),
    ],
}

AUTOMATIC_RULES: Dict[RoundStage, List[Tuple[Guard, Effect]]] = {
    RoundStage.DEALING: [
        (
            lambda context, event: (
                guards.dealer_shows_ace(context)
                and guards.any_player_has_blackjack(context.spots)
            ),
            _go(RoundStage.EVEN_MONEY),
        ),
        (_context_only(guards.dealer_shows_ace), _go(RoundStage.INSURANCE)),
        (_always, _go(RoundStage.CHECK_BLACKJACKS)),
    ],
    RoundStage.AFTER_EVEN_MONEY: [
        (_spots_only(guards.all_spots_settled), _go(RoundStage.CHECK_BLACKJACKS)),
        (_always, _go(RoundStage.INSURANCE)),
    ],
    RoundStage.CHECK_BLACKJACKS: [
        (_context_only(guards.dealer_has_blackjack), _go(RoundStage.DEALER_TURN)),
        (_always, _go(RoundStage.PLAYER_TURN)),
    ],
    RoundStage.PLAYER_TURN: [
        (_spots_only(guards.all_spots_settled), _go(RoundStage.DEALER_TURN)),
        (_context_only(guards.current_spot_settled), _next_spot_or_dealer),
        (
            lambda context, event: (
                guards.current_hand_has_21(context)
                or guards.current_hand_is_split_aces(context)
            ),
            advance_or_finish,
        ),
    ],
    RoundStage.AFTER_HIT: [
        (_context_only(guards.hand_still_playable), _go(RoundStage.PLAYER_TURN)),
        (_spots_only(guards.all_spots_settled), _go(RoundStage.DEALER_TURN)),
        (_always, advance_or_finish),
    ],
    RoundStage.AFTER_DOUBLE: [
        (_always, advance_or_finish),
    ],
    RoundStage.DEALER_TURN: [
        (_spots_only(guards.no_active_player_hands), _go(RoundStage.SETTLEMENT)),
        (_context_only(guards.should_dealer_hit), _go(RoundStage.DEALER_TURN, actions.dealer_hit)),
        (_always, _go(RoundStage.SETTLEMENT)),
    ],
}

# Run once each time a stage is entered from a different stage
ENTRY_ACTIONS = {
    RoundStage.DEALING: actions.deal_initial_cards,
    RoundStage.INSURANCE: lambda context, rng: actions.offer_insurance(context),
    RoundStage.DEALER_TURN: lambda context, rng: actions.reveal_dealer_card(context),
    RoundStage.SETTLEMENT: lambda context, rng: actions.settle_all_spots(context),
}

# Payload used to ask whether an event carrying chips could currently be accepted
_PROBE_EVENTS = {
    EventType.ADD_BET: lambda context: GameEvent(EventType.ADD_BET, amount=MIN_BET),
    EventType.ADD_SIDE_BET: lambda context: GameEvent(
        EventType.ADD_SIDE_BET,
        amount=MIN_BET,
        bet_type=SideBetType.TWENTY_ONE_PLUS_THREE,
    ),
    EventType.SELECT_SPOT: lambda context: GameEvent(
        EventType.SELECT_SPOT, spot_index=context.betting_spot_index
    ),
}


class StateTransitionEngine:
    """
    Pure transitions of the round state machine.

    All methods are static; state lives entirely in the ``(stage, context)``
    pair the caller passes in and gets back.
    """

    @staticmethod
    def initial_context(
        rng: Optional[random.Random] = None, bankroll: float = INITIAL_BANKROLL
    ) -> GameContext:
        """
        Create the context of a new session: a fresh shoe and empty spots.

        Args:
            rng: Random source for shuffling (defaults to the random module)
            bankroll: Starting bankroll

        Returns:
            A context in which the first round's bets can be placed
        """
        return GameContext(shoe=create_shoe(rng=rng), bankroll=bankroll)

    @staticmethod
    def transition(
        stage: RoundStage,
        context: GameContext,
        event: GameEvent,
        rng: Optional[random.Random] = None,
    ) -> Tuple[RoundStage, GameContext]:
        """
        Apply one input event.

        Args:
            stage: Current stage
            context: Current context
            event: The input event
            rng: Random source used if the shoe has to be reshuffled

        Returns:
            The stage and context after the event and every automatic
            transition it triggered. An event that is not accepted in the
            current stage, or whose guards fail, returns the inputs unchanged.
        """
        effect = StateTransitionEngine._select(
            EVENT_RULES.get((stage, event.type), ()), context, event
        )
        if effect is None:
            logger.debug("Ignored %s in stage %s", event.type.name, stage.name)
            return stage, context

        next_stage, context = effect(context, event)
        logger.debug("%s: %s -> %s", event.type.name, stage.name, next_stage.name)
        context = StateTransitionEngine._enter(stage, next_stage, context, rng)
        return StateTransitionEngine._resolve(next_stage, context, rng)

    @staticmethod
    def valid_events(stage: RoundStage, context: GameContext) -> List[EventType]:
        """
        List the events that would currently be accepted.

        Events that carry a chip amount are checked with the smallest bet.
        """
        valid = []
        for event_type in EventType:
            rules = EVENT_RULES.get((stage, event_type))
            if not rules:
                continue
            probe = _PROBE_EVENTS.get(event_type)
            event = probe(context) if probe else GameEvent(event_type)
            if StateTransitionEngine._select(rules, context, event) is not None:
                valid.append(event_type)
        return valid

    @staticmethod
    def _select(rules, context, event) -> Optional[Effect]:
        for guard, effect in rules:
            if guard(context, event):
                return effect
        return None

    @staticmethod
    def _enter(previous, stage, context, rng) -> GameContext:
        entry = ENTRY_ACTIONS.get(stage)
        if entry is None or stage == previous:
            return context
        return entry(context, rng)

    @staticmethod
    def _resolve(stage, context, rng) -> Tuple[RoundStage, GameContext]:
        """Run automatic transitions until a stage needs input."""
        for _ in range(MAX_CASCADE_STEPS):
            effect = StateTransitionEngine._select(
                AUTOMATIC_RULES.get(stage, ()), context, None
            )
            if effect is None:
                return stage, context
            next_stage, context = effect(context, None)
            if next_stage != stage:
                logger.debug("auto: %s -> %s", stage.name, next_stage.name)
            context = StateTransitionEngine._enter(stage, next_stage, context, rng)
            stage = next_stage
        raise RuntimeError(
            f"Automatic transitions did not settle after {MAX_CASCADE_STEPS} steps "
            f"(stuck in {stage.name})"
        )
