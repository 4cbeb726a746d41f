"""
Pure scoring functions over sequences of cards.

Two totals exist for every hand: the visible total, which only counts face-up
cards and is what a player at the table can see, and the full total, which
counts every card and is used for the dealer's real hand and for settlement.
"""

from typing import Sequence, Tuple

from spotjack.blackjack.constants import BLACKJACK_TOTAL
from spotjack.common.card import Card, Rank


def _soft_total(cards: Sequence[Card], include_face_down: bool) -> Tuple[int, int]:
    """
    Total the cards, demoting aces from 11 to 1 while the hand is over 21.

    Returns the total and the number of aces still counted as 11.
    """
    total = 0
    aces = 0
    for card in cards:
        if not include_face_down and not card.face_up:
            continue
        total += card.rank.blackjack_value
        if card.rank is Rank.ACE:
            aces += 1

    while total > BLACKJACK_TOTAL and aces > 0:
        total -= 10
        aces -= 1

    return total, aces


def hand_value(cards: Sequence[Card]) -> int:
    """Value of the face-up cards."""
    return _soft_total(cards, include_face_down=False)[0]


def full_hand_value(cards: Sequence[Card]) -> int:
    """Value of all cards, face down included."""
    return _soft_total(cards, include_face_down=True)[0]


def is_soft(cards: Sequence[Card]) -> bool:
    """Whether an ace in the visible hand still counts as 11."""
    total, soft_aces = _soft_total(cards, include_face_down=False)
    return soft_aces > 0 and total <= BLACKJACK_TOTAL


def display_value(cards: Sequence[Card]) -> str:
    """
    Format the visible value of a hand for display.

    >>> from spotjack.common.card import parse_card
    >>> display_value([parse_card("AS"), parse_card("7D")])
    '8 / 18'
    >>> display_value([parse_card("AS"), parse_card("KD")])
    'BJ'
    """
    visible = [card for card in cards if card.face_up]
    if not visible:
        return ""

    if len(cards) == 2 and len(visible) == 2 and full_hand_value(cards) == BLACKJACK_TOTAL:
        return "BJ"

    total, soft_aces = _soft_total(visible, include_face_down=False)
    if soft_aces > 0 and total <= BLACKJACK_TOTAL:
        low = total - 10
        if low > 0 and low != total:
            return f"{low} / {total}"

    return str(total)


def is_bust(cards: Sequence[Card]) -> bool:
    return hand_value(cards) > BLACKJACK_TOTAL


def is_blackjack(cards: Sequence[Card]) -> bool:
    """Two cards totalling 21, counting face-down cards."""
    return len(cards) == 2 and full_hand_value(cards) == BLACKJACK_TOTAL


def is_triple_seven(cards: Sequence[Card]) -> bool:
    if len(cards) < 3:
        return False
    return sum(1 for card in cards if card.rank is Rank.SEVEN) >= 3


def can_split(cards: Sequence[Card]) -> bool:
    """
    Two cards of equal blackjack value.

    Equality is on value rather than rank, so a king and a queen split.
    """
    return (
        len(cards) == 2
        and cards[0].rank.blackjack_value == cards[1].rank.blackjack_value
    )


def can_double_down(cards: Sequence[Card]) -> bool:
    return len(cards) == 2
