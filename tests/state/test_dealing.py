"""
Tests for the deal and for the offers made when the dealer shows an ace.
"""

import random
from dataclasses import replace
from unittest.mock import MagicMock

from spotjack.blackjack.constants import PerfectPairsResult, SideBetType
from spotjack.events import EngineEventType, EventBus
from spotjack.state import EventType, GameEvent, HandResult, RoundStage, StateTransitionEngine


def test_fresh_shoe_after_single_spot_deal(deal):
    context = StateTransitionEngine.initial_context(rng=random.Random(11))
    _, context = StateTransitionEngine.transition(
        RoundStage.BETTING, context, GameEvent(EventType.ADD_BET, amount=25)
    )
    _, context = deal(context)

    assert len(context.shoe) == 308
    assert len(context.spots[3].hands) == 1
    assert len(context.spots[3].hands[0].cards) == 2
    assert len(context.dealer_hand) == 2
    assert context.round_number == 1


def test_deal_order_and_orientation(betting_context, deal, cards):
    start = betting_context(
        shoe=["2H", "3H", "4H", "5H", "6H", "9H"], bets={1: 10, 4: 20}
    )
    stage, context = deal(start)

    assert stage is RoundStage.PLAYER_TURN
    assert context.spots[1].hands[0].cards == cards("2H", "3H")
    assert context.spots[4].hands[0].cards == cards("4H", "5H")
    assert context.spots[1].hands[0].bet == 10
    assert context.spots[4].hands[0].bet == 20
    assert context.dealer_hand[0] == cards("6H")[0]
    assert context.dealer_hand[1].face_up is False
    assert all(not spot.hands for spot in context.spots if not spot.is_funded)
    assert context.active_spot_index == 1
    assert context.message == "Spot 2 - Your turn"


def test_deal_snapshots_previous_bets(betting_context, deal):
    start = betting_context(
        shoe=["2H", "3H", "6H", "9H"],
        bets={2: 25},
        side_bets={2: {SideBetType.PERFECT_PAIRS: 5}},
    )
    _, context = deal(start)
    assert context.previous_bets.spots[2].bet == 25
    assert context.previous_bets.spots[2].side_bets.perfect_pairs == 5
    assert context.previous_bets.total == 30


def test_low_shoe_is_reshuffled_before_the_deal(betting_context, deal, cards):
    listener = MagicMock()
    EventBus.get_instance().on(EngineEventType.SHUFFLE, listener)

    start = betting_context(bets={3: 25})
    start = replace(start, shoe=cards("2H") * 40)
    _, context = deal(start)

    listener.assert_called_once()
    assert len(context.shoe) == 312 - 4


def test_hole_card_dealt_without_identity(betting_context, deal):
    dealt = MagicMock()
    EventBus.get_instance().on(EngineEventType.CARD_DEALT, dealt)
    deal(betting_context(shoe=["10S", "7H", "9D", "KC"]))

    events = [call[0][0] for call in dealt.call_args_list]
    assert len(events) == 4
    hole = events[-1]
    assert hole["is_dealer"] is True
    assert hole["is_hole_card"] is True
    assert hole["card"] is None


def test_side_bets_paid_at_deal(betting_context, deal):
    start = betting_context(
        shoe=["8H", "8H", "10S", "7D"],
        bets={3: 25},
        side_bets={
            3: {SideBetType.PERFECT_PAIRS: 10, SideBetType.TWENTY_ONE_PLUS_THREE: 5}
        },
    )
    assert start.bankroll == 2460
    stage, context = deal(start)

    spot = context.spots[3]
    assert spot.side_bet_results.perfect_pairs is PerfectPairsResult.PERFECT_PAIR
    assert spot.side_bet_results.twenty_one_plus_three is None
    assert context.bankroll == 2460 + 260
    assert stage is RoundStage.PLAYER_TURN


def test_side_bet_result_events(betting_context, deal):
    listener = MagicMock()
    EventBus.get_instance().on(EngineEventType.SIDE_BET_RESULT, listener)
    deal(
        betting_context(
            shoe=["8H", "9H", "10S", "7D"],
            bets={3: 25},
            side_bets={3: {SideBetType.PERFECT_PAIRS: 10}},
        )
    )
    listener.assert_called_once()
    data = listener.call_args[0][0]
    assert data["bet_type"] == "perfect_pairs"
    assert data["result"] is None
    assert data["payout"] == 0


def test_first_active_spot_skips_blackjack(betting_context, deal):
    start = betting_context(
        shoe=["AS", "KH", "10C", "7D", "9D", "8C"], bets={0: 25, 6: 25}
    )
    stage, context = deal(start)
    assert stage is RoundStage.PLAYER_TURN
    assert context.active_spot_index == 6


def test_player_blackjack_settles_without_input(betting_context, deal):
    stage, context = deal(betting_context(shoe=["AS", "KH", "9D", "8C"]))
    assert stage is RoundStage.SETTLEMENT
    hand = context.spots[3].hands[0]
    assert hand.result is HandResult.BLACKJACK
    assert context.bankroll == 2475 + 62.5
    assert context.last_win == 37.5
    assert context.last_win_amount == 62.5


def test_dealer_blackjack_without_ace_up_ends_round(betting_context, deal):
    stage, context = deal(betting_context(shoe=["10S", "9H", "KD", "AC"]))
    assert stage is RoundStage.SETTLEMENT
    assert all(card.face_up for card in context.dealer_hand)
    assert context.spots[3].hands[0].result is HandResult.LOSE
    assert context.bankroll == 2475


def test_ace_up_offers_insurance(betting_context, deal):
    stage, context = deal(betting_context(shoe=["10S", "9H", "AD", "7C"]))
    assert stage is RoundStage.INSURANCE
    assert context.message == "Insurance? Costs $12.5"
    assert StateTransitionEngine.valid_events(stage, context) == [
        EventType.TAKE_INSURANCE,
        EventType.DECLINE_INSURANCE,
    ]


def test_ace_up_and_player_blackjack_offers_even_money(betting_context, deal):
    stage, _ = deal(betting_context(shoe=["AS", "KH", "AD", "9C"]))
    assert stage is RoundStage.EVEN_MONEY


def test_take_even_money(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["AS", "KH", "AD", "9C"]))
    stage, context = play(stage, context, EventType.TAKE_EVEN_MONEY)

    assert stage is RoundStage.SETTLEMENT
    hand = context.spots[3].hands[0]
    assert hand.is_settled
    assert hand.result is HandResult.WIN
    assert context.bankroll == 2525
    assert context.last_win == 25
    assert context.last_win_amount == 50
    assert context.message == "You win!"


def test_decline_even_money_all_blackjack_skips_insurance(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["AS", "KH", "AD", "9C"]))
    stage, context = play(stage, context, EventType.DECLINE_EVEN_MONEY)

    assert stage is RoundStage.SETTLEMENT
    assert context.spots[3].hands[0].result is HandResult.BLACKJACK
    assert context.bankroll == 2475 + 62.5


def test_decline_even_money_against_dealer_blackjack_pushes(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["AS", "KH", "AD", "KC"]))
    stage, context = play(stage, context, EventType.DECLINE_EVEN_MONEY)

    assert stage is RoundStage.SETTLEMENT
    assert context.spots[3].hands[0].result is HandResult.PUSH
    assert context.bankroll == 2500
    assert context.message == "Push"


def test_even_money_with_other_spots_still_offers_insurance(betting_context, deal, play):
    start = betting_context(
        shoe=["AS", "KH", "10C", "6D", "AD", "9C"], bets={2: 25, 4: 25}
    )
    stage, context = deal(start)
    assert stage is RoundStage.EVEN_MONEY

    stage, context = play(stage, context, EventType.TAKE_EVEN_MONEY)
    assert stage is RoundStage.INSURANCE
    assert context.spots[2].hands[0].result is HandResult.WIN
    assert context.spots[4].hands[0].result is None


def test_decline_even_money_with_other_spots_offers_insurance(betting_context, deal, play):
    start = betting_context(
        shoe=["AS", "KH", "10C", "6D", "AD", "9C"], bets={2: 25, 4: 25}
    )
    stage, context = deal(start)
    stage, _ = play(stage, context, EventType.DECLINE_EVEN_MONEY)
    assert stage is RoundStage.INSURANCE


def test_declined_insurance_against_dealer_blackjack(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["10C", "9D", "AD", "KC"]))
    stage, context = play(stage, context, EventType.DECLINE_INSURANCE)

    assert stage is RoundStage.SETTLEMENT
    assert context.spots[3].hands[0].result is HandResult.LOSE
    assert context.bankroll == 2475
    assert context.last_win == -25
    assert context.last_win_amount == 0
    assert context.message == "Dealer wins"


def test_taken_insurance_against_dealer_blackjack(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["10C", "9D", "AD", "KC"]))
    stage, context = play(stage, context, EventType.TAKE_INSURANCE)

    assert stage is RoundStage.SETTLEMENT
    assert context.bankroll == 2500
    assert context.insurance_bet == 0
    assert context.last_win == 0
    assert context.last_win_amount == 37.5


def test_taken_insurance_without_dealer_blackjack(betting_context, deal, play):
    stage, context = deal(betting_context(shoe=["10C", "9D", "AD", "7C"]))
    stage, context = play(stage, context, EventType.TAKE_INSURANCE)

    assert stage is RoundStage.PLAYER_TURN
    assert context.insurance_bet == 12.5
    assert context.bankroll == 2462.5

    stage, context = play(stage, context, EventType.STAND)
    assert stage is RoundStage.SETTLEMENT
    assert context.spots[3].hands[0].result is HandResult.WIN
    assert context.bankroll == 2512.5
    assert context.last_win == 12.5
    assert context.insurance_bet == 0


def test_insurance_needs_funds(betting_context, deal, play):
    stage, context = deal(
        betting_context(shoe=["10C", "9D", "AD", "7C"], bankroll=30)
    )
    assert context.bankroll == 5
    new_stage, new_context = play(stage, context, EventType.TAKE_INSURANCE)
    assert new_stage is RoundStage.INSURANCE
    assert new_context is context
