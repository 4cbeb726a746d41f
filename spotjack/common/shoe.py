"""
Shoe construction, shuffling and dealing.

The shoe is an immutable tuple of cards drawn from the front. Every operation
returns a new tuple instead of mutating the one it was given, so a shoe held
by a round context is never changed behind that context's back.

>>> shoe = create_shoe(deck_count=1)
>>> len(shoe)
52
>>> card, shoe = deal_card(shoe, face_up=False)
>>> len(shoe), card.face_up
(51, False)
"""

import logging
import random
from typing import Optional, Sequence, Tuple

from spotjack.blackjack.constants import DECK_COUNT, RESHUFFLE_THRESHOLD
from spotjack.common.card import Card, Rank, Suit

logger = logging.getLogger("spotjack.shoe")

CARDS_PER_DECK = 52

# Precompute the default deck
_DEFAULT_DECK: Tuple[Card, ...] = tuple(
    Card(suit, rank) for suit in Suit for rank in Rank
)


class EmptyShoeError(RuntimeError):
    """Raised when a card is drawn from a shoe that has no cards left."""


def create_deck() -> Tuple[Card, ...]:
    """Return one ordered 52-card deck, every card face up."""
    return _DEFAULT_DECK


def shuffle(cards: Sequence[Card], rng: Optional[random.Random] = None) -> Tuple[Card, ...]:
    """
    Return a uniformly shuffled copy of ``cards``.

    Fisher-Yates: walk from the back, swapping each position with a uniformly
    chosen position at or before it.

    :param cards: Cards to shuffle; not modified
    :param rng: Uniform random source (defaults to the module-level one)
    """
    rng = rng or random
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return tuple(shuffled)


def create_shoe(
    deck_count: int = DECK_COUNT, rng: Optional[random.Random] = None
) -> Tuple[Card, ...]:
    """
    Build ``deck_count`` standard decks and shuffle them together.

    Cards are stored face up; orientation is decided when a card is dealt.

    :param deck_count: Number of 52-card decks in the shoe
    :param rng: Uniform random source used for the shuffle
    :raises ValueError: If deck_count is less than 1
    """
    if deck_count < 1:
        raise ValueError("Number of decks must be at least 1")

    cards = create_deck() * deck_count
    shoe = shuffle(cards, rng)
    logger.debug("Created shoe of %d decks (%d cards)", deck_count, len(shoe))
    return shoe


def deal_card(shoe: Tuple[Card, ...], face_up: bool = True) -> Tuple[Card, Tuple[Card, ...]]:
    """
    Take the front card of the shoe.

    :param shoe: Current shoe
    :param face_up: Orientation given to the dealt card
    :return: The dealt card and the remaining shoe
    :raises EmptyShoeError: If the shoe has no cards
    """
    if not shoe:
        raise EmptyShoeError("Cannot deal from an empty shoe")
    return shoe[0].turned(face_up), shoe[1:]


def should_reshuffle(
    shoe: Sequence[Card],
    deck_count: int = DECK_COUNT,
    threshold: float = RESHUFFLE_THRESHOLD,
) -> bool:
    """
    Whether the shoe has dropped below its reshuffle point.

    >>> should_reshuffle(create_shoe(deck_count=6)[:77])
    True
    >>> should_reshuffle(create_shoe(deck_count=6)[:78])
    False
    """
    if not 0 < threshold <= 1:
        raise ValueError("Reshuffle threshold must be between 0 and 1")
    return len(shoe) < deck_count * CARDS_PER_DECK * threshold
