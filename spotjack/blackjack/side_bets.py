"""
Side-bet evaluation.

Both side bets are decided from the initial deal only: 21+3 looks at the
player's first two cards together with the dealer's up-card, Perfect Pairs at
the player's first two cards. Evaluators return the winning tier or ``None``.
"""

from typing import Optional, Sequence

from spotjack.blackjack.constants import (
    SIDE_BET_PAYOUTS,
    PerfectPairsResult,
    SideBetType,
    TwentyOnePlusThreeResult,
)
from spotjack.common.card import Card, Rank


def _is_straight(cards: Sequence[Card]) -> bool:
    values = sorted(card.rank.straight_value for card in cards)
    if values[2] - values[1] == 1 and values[1] - values[0] == 1:
        return True
    # ace low: A-2-3
    return values == [2, 3, Rank.ACE.straight_value]


def _is_flush(cards: Sequence[Card]) -> bool:
    return len({card.suit for card in cards}) == 1


def _is_three_of_a_kind(cards: Sequence[Card]) -> bool:
    return len({card.rank for card in cards}) == 1


def evaluate_21_plus_3(
    player_cards: Sequence[Card], dealer_up_card: Card
) -> Optional[TwentyOnePlusThreeResult]:
    """
    Classify the player's two cards plus the dealer's up-card.

    >>> from spotjack.common.card import parse_card
    >>> evaluate_21_plus_3([parse_card("QH"), parse_card("KH")], parse_card("AH"))
    <TwentyOnePlusThreeResult.STRAIGHT_FLUSH: 'straight_flush'>
    """
    if len(player_cards) < 2:
        return None

    three_cards = [player_cards[0], player_cards[1], dealer_up_card]
    triple = _is_three_of_a_kind(three_cards)
    straight = _is_straight(three_cards)
    flush = _is_flush(three_cards)

    # A suited triple needs the same card three times, which a multi-deck shoe allows
    if triple and flush:
        return TwentyOnePlusThreeResult.SUITED_TRIPLE
    if straight and flush:
        return TwentyOnePlusThreeResult.STRAIGHT_FLUSH
    if triple:
        return TwentyOnePlusThreeResult.THREE_OF_A_KIND
    if straight:
        return TwentyOnePlusThreeResult.STRAIGHT
    if flush:
        return TwentyOnePlusThreeResult.FLUSH
    return None


def evaluate_perfect_pairs(player_cards: Sequence[Card]) -> Optional[PerfectPairsResult]:
    """
    Classify the player's first two cards as a pair.

    >>> from spotjack.common.card import parse_card
    >>> evaluate_perfect_pairs([parse_card("8H"), parse_card("8D")])
    <PerfectPairsResult.COLORED_PAIR: 'colored_pair'>
    """
    if len(player_cards) < 2:
        return None

    first, second = player_cards[0], player_cards[1]
    if first.rank is not second.rank:
        return None
    if first.suit is second.suit:
        return PerfectPairsResult.PERFECT_PAIR
    if first.suit.is_red == second.suit.is_red:
        return PerfectPairsResult.COLORED_PAIR
    return PerfectPairsResult.MIXED_PAIR


def side_bet_payout(bet_type: SideBetType, result, stake: float) -> float:
    """Amount credited for a side bet, stake included; 0 when it lost."""
    if result is None or stake <= 0:
        return 0
    return stake * SIDE_BET_PAYOUTS[bet_type][result]
