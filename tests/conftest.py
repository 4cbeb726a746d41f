"""
Pytest configuration for the spotjack test suite.

Provides the event bus reset and helpers for building cards, stacked shoes
and contexts with bets already on the table.
"""

import pytest

from spotjack.common.card import parse_card
from spotjack.events import EventBus
from spotjack.state import EventType, GameContext, GameEvent, RoundStage, StateTransitionEngine
from spotjack.state.models import SideBets, SpotState, empty_spots

# Enough filler to keep a stacked shoe above the reshuffle point
FILLER_COUNT = 120


# Reset event bus before each test
@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def cards():
    """Build a tuple of cards from short codes: cards("AS", "10H")."""

    def build(*codes):
        return tuple(parse_card(code) for code in codes)

    return build


@pytest.fixture
def stacked_shoe(cards):
    """
    A shoe whose front is the given cards, in dealing order.

    The rest is twos of clubs, so a test that runs out of stacked cards still
    deals something predictable.
    """

    def build(*codes):
        return cards(*codes) + cards(*(["2C"] * FILLER_COUNT))

    return build


@pytest.fixture
def betting_context(stacked_shoe):
    """
    Context in the betting stage with bets placed and paid for.

    Args (of the returned builder):
        shoe: Card codes in dealing order
        bets: Mapping of spot index to main bet
        side_bets: Mapping of spot index to {SideBetType: amount}
        bankroll: Bankroll before the bets were placed
    """

    def build(shoe=(), bets=None, side_bets=None, bankroll=2500):
        bets = bets or {3: 25}
        side_bets = side_bets or {}
        spots = list(empty_spots())
        staked = 0
        for index, bet in bets.items():
            spot_side_bets = SideBets()
            for bet_type, amount in side_bets.get(index, {}).items():
                spot_side_bets = spot_side_bets.with_amount(bet_type, amount)
            spots[index] = SpotState(id=index, bet=bet, side_bets=spot_side_bets)
            staked += bet + spot_side_bets.total
        return GameContext(
            shoe=stacked_shoe(*shoe),
            spots=tuple(spots),
            bankroll=bankroll - staked,
        )

    return build


@pytest.fixture
def play():
    """Send a sequence of events: play(stage, context, EventType.HIT, ...)."""

    def run(stage, context, *events):
        for event in events:
            if isinstance(event, EventType):
                event = GameEvent(event)
            stage, context = StateTransitionEngine.transition(stage, context, event)
        return stage, context

    return run


@pytest.fixture
def deal(play):
    """Deal a betting context and return the resulting (stage, context)."""

    def run(context):
        return play(RoundStage.BETTING, context, EventType.DEAL)

    return run
