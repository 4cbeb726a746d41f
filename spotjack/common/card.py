"""
This module defines the `Suit`, `Rank`, and `Card` types used throughout spotjack.

- `Suit`: An enum representing the four suits of a standard deck of playing
cards: Hearts, Diamonds, Clubs, and Spades.

- `Rank`: An enum representing the thirteen ranks of a standard deck, with
helpers for the blackjack value and the straight-detection value of a rank.

- `Card`: An immutable playing card. Besides its suit and rank a card carries
a `face_up` flag; the flag is assigned when the card is dealt and decides
whether the card counts toward the publicly visible value of a hand.

>>> card = parse_card("10H")
>>> print(card)
10 of ♥
>>> card.rank.blackjack_value
10
"""

from dataclasses import dataclass, replace
from enum import Enum, unique


@unique
class Suit(Enum):
    """
    Enum for suits in a card deck.
    """

    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"
    SPADES = "♠"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    def __str__(self) -> str:
        return self.value


@unique
class Rank(Enum):
    """
    Enum for ranks in a card deck.
    """

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def blackjack_value(self) -> int:
        """The value of the rank when scoring a blackjack hand (ace as 11)."""
        if self is Rank.ACE:
            return 11
        if self in (Rank.JACK, Rank.QUEEN, Rank.KING):
            return 10
        return int(self.value)

    @property
    def straight_value(self) -> int:
        """Numeric rank used to detect straights, with the ace high (14)."""
        return _STRAIGHT_VALUES[self]

    def __str__(self) -> str:
        return self.value


_STRAIGHT_VALUES = {
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 11,
    Rank.QUEEN: 12,
    Rank.KING: 13,
    Rank.ACE: 14,
}

_SUIT_CODES = {"H": Suit.HEARTS, "D": Suit.DIAMONDS, "C": Suit.CLUBS, "S": Suit.SPADES}


@dataclass(frozen=True)
class Card:
    """
    Immutable playing card.

    >>> card = Card(Suit.HEARTS, Rank.TWO)
    >>> print(card)
    2 of ♥
    >>> card.turned(False).face_up
    False
    """

    suit: Suit
    rank: Rank
    face_up: bool = True

    def __post_init__(self):
        if not isinstance(self.suit, Suit):
            raise TypeError(f"Invalid suit: {self.suit}")
        if not isinstance(self.rank, Rank):
            raise TypeError(f"Invalid rank: {self.rank}")

    def turned(self, face_up: bool) -> "Card":
        """Return a copy of this card with the given orientation."""
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)

    @property
    def code(self) -> str:
        """Short code such as ``"AS"`` or ``"10H"``."""
        return f"{self.rank.value}{self.suit.name[0]}"

    def __repr__(self) -> str:
        return f"Card(Suit.{self.suit.name}, Rank.{self.rank.name}, face_up={self.face_up})"

    def __str__(self) -> str:
        return f"{self.rank} of {self.suit}"


def parse_card(code: str, face_up: bool = True) -> Card:
    """
    Build a card from a short code: rank followed by a suit letter.

    :param code: Code such as ``"AS"``, ``"10h"`` or ``"KD"``
    :param face_up: Orientation of the returned card
    :return: The parsed card
    :raises ValueError: If the code does not name a card
    """
    code = code.strip().upper()
    if len(code) < 2:
        raise ValueError(f"Invalid card code: {code!r}")

    rank_part, suit_part = code[:-1], code[-1]
    try:
        rank = Rank(rank_part)
        suit = _SUIT_CODES[suit_part]
    except (ValueError, KeyError) as exc:
        raise ValueError(f"Invalid card code: {code!r}") from exc
    return Card(suit, rank, face_up)
