"""
Card and shoe primitives shared by the rest of the engine.
"""

from spotjack.common.card import Card, Rank, Suit, parse_card
from spotjack.common.shoe import (
    EmptyShoeError,
    create_deck,
    create_shoe,
    deal_card,
    should_reshuffle,
    shuffle,
)

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "parse_card",
    "EmptyShoeError",
    "create_deck",
    "create_shoe",
    "deal_card",
    "should_reshuffle",
    "shuffle",
]
