"""
Immutable state models for the round state machine.

This module provides frozen dataclasses representing one blackjack session:
the shoe, the seven betting spots with their hands, the dealer's hand and the
bankroll. The models are designed to be used with pure transition functions
that create new instances rather than modifying existing ones; every nested
collection is a tuple.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from spotjack.blackjack.constants import (
    DEFAULT_BETTING_SPOT,
    INITIAL_BANKROLL,
    SPOT_COUNT,
    PerfectPairsResult,
    SideBetType,
    TwentyOnePlusThreeResult,
)
from spotjack.blackjack.hand import (
    display_value,
    full_hand_value,
    hand_value,
    is_blackjack,
    is_bust,
)
from spotjack.common.card import Card


class RoundStage(Enum):
    """
    States of the round state machine.

    Only BETTING, EVEN_MONEY, INSURANCE, PLAYER_TURN and SETTLEMENT wait for
    input; the other stages are passed through automatically.
    """

    BETTING = "betting"
    DEALING = "dealing"
    EVEN_MONEY = "even_money"
    AFTER_EVEN_MONEY = "after_even_money"
    INSURANCE = "insurance"
    CHECK_BLACKJACKS = "check_blackjacks"
    PLAYER_TURN = "player_turn"
    AFTER_HIT = "after_hit"
    AFTER_DOUBLE = "after_double"
    DEALER_TURN = "dealer_turn"
    SETTLEMENT = "settlement"


class HandResult(Enum):
    """Outcome of a settled hand."""

    WIN = "win"
    LOSE = "lose"
    PUSH = "push"
    BLACKJACK = "blackjack"
    SURRENDER = "surrender"


class EventType(Enum):
    """Input events raised by the presentation layer."""

    SELECT_SPOT = "select_spot"
    ADD_BET = "add_bet"
    DOUBLE_BET = "double_bet"
    CLEAR_BET = "clear_bet"
    CLEAR_ALL_BETS = "clear_all_bets"
    ADD_SIDE_BET = "add_side_bet"
    REBET = "rebet"
    DEAL = "deal"
    TAKE_EVEN_MONEY = "take_even_money"
    DECLINE_EVEN_MONEY = "decline_even_money"
    TAKE_INSURANCE = "take_insurance"
    DECLINE_INSURANCE = "decline_insurance"
    HIT = "hit"
    STAND = "stand"
    DOUBLE = "double"
    SPLIT = "split"
    SURRENDER = "surrender"
    NEW_ROUND = "new_round"


@dataclass(frozen=True)
class GameEvent:
    """
    An input event and its payload.

    Attributes:
        type: Which event this is
        spot_index: Target spot for SELECT_SPOT
        amount: Chip amount for ADD_BET and ADD_SIDE_BET
        bet_type: Side wager for ADD_SIDE_BET
    """

    type: EventType
    spot_index: Optional[int] = None
    amount: float = 0
    bet_type: Optional[SideBetType] = None


@dataclass(frozen=True)
class SideBets:
    """Side wagers placed on one spot."""

    twenty_one_plus_three: float = 0
    perfect_pairs: float = 0

    def amount(self, bet_type: SideBetType) -> float:
        return getattr(self, bet_type.value)

    def with_amount(self, bet_type: SideBetType, amount: float) -> "SideBets":
        return replace(self, **{bet_type.value: amount})

    @property
    def total(self) -> float:
        return self.twenty_one_plus_three + self.perfect_pairs


@dataclass(frozen=True)
class SideBetResults:
    """Side-bet outcomes, fixed once the initial cards are dealt."""

    twenty_one_plus_three: Optional[TwentyOnePlusThreeResult] = None
    perfect_pairs: Optional[PerfectPairsResult] = None

    def result(self, bet_type: SideBetType):
        return getattr(self, bet_type.value)


@dataclass(frozen=True)
class HandState:
    """
    Immutable representation of one hand within a spot.

    Attributes:
        cards: Cards in the hand, in the order they were dealt
        bet: Wager riding on this hand (doubled after a double down)
        is_doubled: Whether the bet has been doubled
        is_split: Whether this hand was created via a split
        is_split_aces: Whether this hand came from splitting aces (one card, no action)
        is_settled: Whether the hand's outcome has been decided
        triple_sevens_awarded: Whether the triple-seven bonus was paid on this hand
        result: The outcome once settled
    """

    cards: Tuple[Card, ...] = ()
    bet: float = 0
    is_doubled: bool = False
    is_split: bool = False
    is_split_aces: bool = False
    is_settled: bool = False
    triple_sevens_awarded: bool = False
    result: Optional[HandResult] = None

    @property
    def value(self) -> int:
        return hand_value(self.cards)

    @property
    def full_value(self) -> int:
        return full_hand_value(self.cards)

    @property
    def is_bust(self) -> bool:
        return is_bust(self.cards)

    @property
    def is_blackjack(self) -> bool:
        """Two cards totalling 21, whether or not the hand came from a split."""
        return is_blackjack(self.cards)

    @property
    def is_natural(self) -> bool:
        """A blackjack that pays 3:2 (not made from a split)."""
        return self.is_blackjack and not self.is_split

    @property
    def is_done(self) -> bool:
        """Nothing left for the player to do on this hand."""
        return self.is_settled or self.is_bust or self.is_blackjack


@dataclass(frozen=True)
class SpotState:
    """
    One of the seven betting positions.

    Attributes:
        id: Position at the table, 0 to 6
        bet: Main wager
        side_bets: Side wagers
        side_bet_results: Side-bet outcomes decided at the deal
        hands: Hands played from this spot (more than one after splits)
        active_hand_index: Index of the hand currently being played
    """

    id: int
    bet: float = 0
    side_bets: SideBets = field(default_factory=SideBets)
    side_bet_results: SideBetResults = field(default_factory=SideBetResults)
    hands: Tuple[HandState, ...] = ()
    active_hand_index: int = 0

    @property
    def is_funded(self) -> bool:
        return self.bet > 0

    @property
    def total_wager(self) -> float:
        return self.bet + self.side_bets.total

    @property
    def current_hand(self) -> Optional[HandState]:
        if self.active_hand_index >= len(self.hands):
            return None
        return self.hands[self.active_hand_index]

    @property
    def has_more_hands(self) -> bool:
        return self.active_hand_index < len(self.hands) - 1

    @property
    def is_done(self) -> bool:
        return all(hand.is_done for hand in self.hands)

    @property
    def needs_action(self) -> bool:
        """Funded and holding at least one hand the player still has to play."""
        return self.is_funded and not self.is_done


@dataclass(frozen=True)
class SpotBet:
    """Bet shape of one spot, as remembered for rebet."""

    bet: float = 0
    side_bets: SideBets = field(default_factory=SideBets)

    @property
    def total(self) -> float:
        return self.bet + self.side_bets.total


@dataclass(frozen=True)
class PreviousBets:
    """Per-spot bets snapshotted at the last deal."""

    spots: Tuple[SpotBet, ...] = ()

    @property
    def total(self) -> float:
        return sum(spot.total for spot in self.spots)


def empty_spots() -> Tuple[SpotState, ...]:
    return tuple(SpotState(id=i) for i in range(SPOT_COUNT))


def _enum_value(member: Optional[Enum]) -> Optional[str]:
    return member.value if member is not None else None


def _card_to_dict(card: Card) -> Dict[str, Any]:
    if not card.face_up:
        return {"face_up": False}
    return {
        "rank": card.rank.value,
        "suit": card.suit.name.lower(),
        "code": card.code,
        "face_up": True,
    }


@dataclass(frozen=True)
class GameContext:
    """
    The whole mutable-by-replacement state of a session.

    Attributes:
        shoe: Cards left to deal, front first
        spots: The seven betting spots
        active_spot_index: Spot currently acting during the player turn
        betting_spot_index: Spot currently receiving chips during betting
        dealer_hand: Dealer's cards; the hole card is face down until revealed
        bankroll: Money not currently committed to a wager
        insurance_bet: Insurance stake for the round (global, not per spot)
        message: Human-readable status line
        previous_bets: Bets of the last deal, for rebet
        last_win: Net profit or loss of the last settled round
        last_win_amount: Gross amount returned by the last settled round
        round_number: Number of rounds dealt in this session
    """

    shoe: Tuple[Card, ...] = ()
    spots: Tuple[SpotState, ...] = field(default_factory=empty_spots)
    active_spot_index: int = 0
    betting_spot_index: int = DEFAULT_BETTING_SPOT
    dealer_hand: Tuple[Card, ...] = ()
    bankroll: float = INITIAL_BANKROLL
    insurance_bet: float = 0
    message: str = "Select a spot and place your bet"
    previous_bets: Optional[PreviousBets] = None
    last_win: float = 0
    last_win_amount: float = 0
    round_number: int = 0

    @property
    def current_spot(self) -> SpotState:
        return self.spots[self.active_spot_index]

    @property
    def current_hand(self) -> Optional[HandState]:
        return self.current_spot.current_hand

    @property
    def betting_spot(self) -> SpotState:
        return self.spots[self.betting_spot_index]

    @property
    def funded_spots(self) -> Tuple[SpotState, ...]:
        return tuple(spot for spot in self.spots if spot.is_funded)

    @property
    def total_main_bets(self) -> float:
        return sum(spot.bet for spot in self.spots)

    @property
    def total_wagers(self) -> float:
        """Main and side bets on the table (insurance excluded)."""
        return sum(spot.total_wager for spot in self.spots)

    @property
    def dealer_up_card(self) -> Optional[Card]:
        return self.dealer_hand[0] if self.dealer_hand else None

    def with_spot(self, spot: SpotState) -> "GameContext":
        """Return a copy with ``spot`` replacing the spot that has its id."""
        spots = list(self.spots)
        spots[spot.id] = spot
        return replace(self, spots=tuple(spots))

    def with_hand(self, spot_index: int, hand_index: int, hand: HandState) -> "GameContext":
        """Return a copy with one hand of one spot replaced."""
        spot = self.spots[spot_index]
        hands = list(spot.hands)
        hands[hand_index] = hand
        return self.with_spot(replace(spot, hands=tuple(hands)))

    def to_dict(self) -> Dict[str, Any]:
        """
        Render the context as plain data for a presentation layer.

        The shoe is reported by size only and face-down cards carry no rank or
        suit, so nothing a player could not see at the table leaks out.
        """
        result = {
            "shoe_cards_remaining": len(self.shoe),
            "active_spot_index": self.active_spot_index,
            "betting_spot_index": self.betting_spot_index,
            "bankroll": self.bankroll,
            "insurance_bet": self.insurance_bet,
            "message": self.message,
            "last_win": self.last_win,
            "last_win_amount": self.last_win_amount,
            "round_number": self.round_number,
        }

        result["dealer"] = {
            "hand": [_card_to_dict(card) for card in self.dealer_hand],
            "value": hand_value(self.dealer_hand),
            "display_value": display_value(self.dealer_hand),
        }

        result["spots"] = []
        for spot in self.spots:
            spot_dict = {
                "id": spot.id,
                "bet": spot.bet,
                "side_bets": {
                    bet_type.value: spot.side_bets.amount(bet_type)
                    for bet_type in SideBetType
                },
                "side_bet_results": {
                    bet_type.value: _enum_value(spot.side_bet_results.result(bet_type))
                    for bet_type in SideBetType
                },
                "active_hand_index": spot.active_hand_index,
                "hands": [],
            }
            for hand in spot.hands:
                spot_dict["hands"].append(
                    {
                        "cards": [_card_to_dict(card) for card in hand.cards],
                        "value": hand.value,
                        "display_value": display_value(hand.cards),
                        "bet": hand.bet,
                        "is_doubled": hand.is_doubled,
                        "is_split": hand.is_split,
                        "is_split_aces": hand.is_split_aces,
                        "is_settled": hand.is_settled,
                        "result": _enum_value(hand.result),
                    }
                )
            result["spots"].append(spot_dict)

        if self.previous_bets is None:
            result["previous_bets"] = None
        else:
            result["previous_bets"] = [
                {"bet": spot_bet.bet, "side_bets_total": spot_bet.side_bets.total}
                for spot_bet in self.previous_bets.spots
            ]

        return result
