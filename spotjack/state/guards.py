"""
Guard predicates for the round state machine.

Each guard is a plain function of the context (and, for events with a
payload, of that payload). The transition table composes them in priority
order; a guard returning False turns the event into a no-op.
"""

from typing import Sequence

from spotjack.blackjack.constants import (
    BLACKJACK_TOTAL,
    DEALER_STANDS_ON,
    MAX_HANDS_PER_SPOT,
    MIN_BET,
    SPOT_COUNT,
)
from spotjack.blackjack.hand import can_double_down, full_hand_value, is_blackjack
from spotjack.blackjack.hand import can_split as cards_can_split
from spotjack.common.card import Rank
from spotjack.state.models import GameContext, HandResult, SpotState

NO_SPOT = -1


# Betting


def is_valid_spot_index(index) -> bool:
    return isinstance(index, int) and 0 <= index < SPOT_COUNT


def can_afford(context: GameContext, amount: float) -> bool:
    return amount > 0 and context.bankroll >= amount


def can_double_bet(context: GameContext) -> bool:
    spot = context.betting_spot
    return spot.bet > 0 and context.bankroll >= spot.bet


def can_add_side_bet(context: GameContext, amount: float) -> bool:
    """Side bets ride alongside a main bet, never on an empty spot."""
    return context.betting_spot.is_funded and can_afford(context, amount)


def has_any_bet(context: GameContext) -> bool:
    return any(spot.bet >= MIN_BET for spot in context.spots)


def can_rebet(context: GameContext, refund: float = 0) -> bool:
    """
    The previous round's bets can be placed again.

    ``refund`` is money already on the table that would come back to the
    bankroll before the previous bets are placed.
    """
    previous = context.previous_bets
    if previous is None:
        return False
    total = previous.total
    return total > 0 and context.bankroll + refund >= total


# Offers when the dealer shows an ace


def dealer_shows_ace(context: GameContext) -> bool:
    up_card = context.dealer_up_card
    return up_card is not None and up_card.rank is Rank.ACE


def any_player_has_blackjack(spots: Sequence[SpotState]) -> bool:
    return any(
        hand.is_blackjack and not hand.is_settled
        for spot in spots
        if spot.is_funded
        for hand in spot.hands
    )


def all_active_spots_have_blackjack(spots: Sequence[SpotState]) -> bool:
    funded = [spot for spot in spots if spot.is_funded]
    return bool(funded) and all(
        hand.is_blackjack for spot in funded for hand in spot.hands
    )


def can_afford_insurance(context: GameContext) -> bool:
    cost = context.total_main_bets / 2
    return cost > 0 and context.bankroll >= cost


def dealer_has_blackjack(context: GameContext) -> bool:
    return is_blackjack(context.dealer_hand)


# Player turn


def can_hit(context: GameContext) -> bool:
    hand = context.current_hand
    return (
        hand is not None
        and not hand.is_split_aces
        and not hand.is_bust
        and hand.value < BLACKJACK_TOTAL
    )


def can_double(context: GameContext) -> bool:
    hand = context.current_hand
    return (
        hand is not None
        and can_double_down(hand.cards)
        and not hand.is_split_aces
        and context.bankroll >= hand.bet
    )


def can_split(context: GameContext) -> bool:
    spot = context.current_spot
    hand = spot.current_hand
    return (
        hand is not None
        and cards_can_split(hand.cards)
        and len(spot.hands) < MAX_HANDS_PER_SPOT
        and context.bankroll >= hand.bet
    )


def can_surrender(context: GameContext) -> bool:
    spot = context.current_spot
    hand = spot.current_hand
    return (
        hand is not None
        and len(hand.cards) == 2
        and not hand.is_split
        and spot.active_hand_index == 0
    )


def can_stand(context: GameContext) -> bool:
    return context.current_hand is not None


def hand_still_playable(context: GameContext) -> bool:
    """The current hand can take another card after a hit."""
    hand = context.current_hand
    return hand is not None and not hand.is_bust and hand.value < BLACKJACK_TOTAL


def current_hand_has_21(context: GameContext) -> bool:
    hand = context.current_hand
    return hand is not None and hand.value == BLACKJACK_TOTAL


def current_hand_is_split_aces(context: GameContext) -> bool:
    hand = context.current_hand
    return hand is not None and hand.is_split_aces


def next_active_spot_index(spots: Sequence[SpotState], current_index: int) -> int:
    """Index of the next spot to the right that still needs player action."""
    for index in range(current_index + 1, len(spots)):
        if spots[index].needs_action:
            return index
    return NO_SPOT


def has_more_spots(context: GameContext) -> bool:
    return next_active_spot_index(context.spots, context.active_spot_index) != NO_SPOT


def all_spots_settled(spots: Sequence[SpotState]) -> bool:
    return all(spot.is_done for spot in spots if spot.is_funded)


def current_spot_settled(context: GameContext) -> bool:
    return context.current_spot.is_done


# Dealer turn


def no_active_player_hands(spots: Sequence[SpotState]) -> bool:
    """
    No hand needs to be compared against the dealer.

    True when every funded hand is bust, surrendered or a blackjack.
    """
    funded = [spot for spot in spots if spot.is_funded]
    if not funded:
        return False
    return all(
        hand.is_bust or hand.result is HandResult.SURRENDER or hand.is_blackjack
        for spot in funded
        for hand in spot.hands
    )


def should_dealer_hit(context: GameContext) -> bool:
    return full_hand_value(context.dealer_hand) < DEALER_STANDS_ON
