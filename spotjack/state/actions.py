"""
Context updates performed by the round state machine.

Every function here takes a `GameContext` and returns a new one; none of them
checks whether the update is allowed, which is the job of the guards in
`spotjack.state.guards`. Notifications about what happened are published on
the global event bus.
"""

import logging
import random
from dataclasses import replace
from typing import Optional

from spotjack.blackjack.constants import (
    BLACKJACK_PAYOUT,
    DEFAULT_BETTING_SPOT,
    EVEN_MONEY_PAYOUT,
    INSURANCE_PAYOUT,
    PUSH_PAYOUT,
    SIDE_BET_PAYOUTS,
    WIN_PAYOUT,
    SideBetType,
)
from spotjack.blackjack.hand import full_hand_value, is_blackjack, is_triple_seven
from spotjack.blackjack.side_bets import (
    evaluate_21_plus_3,
    evaluate_perfect_pairs,
    side_bet_payout,
)
from spotjack.common.card import Card, Rank
from spotjack.common.shoe import create_shoe, deal_card, should_reshuffle
from spotjack.events import EngineEventType, EventBus
from spotjack.state.guards import NO_SPOT, next_active_spot_index
from spotjack.state.models import (
    GameContext,
    HandResult,
    HandState,
    PreviousBets,
    SideBetResults,
    SideBets,
    SpotBet,
    SpotState,
    empty_spots,
)

logger = logging.getLogger("spotjack.state")


def _emit(event_type: EngineEventType, data: dict) -> None:
    EventBus.get_instance().emit(event_type, data)


def _spot_label(index: int) -> str:
    return f"Spot {index + 1}"


# Betting


def select_spot(context: GameContext, spot_index: int) -> GameContext:
    return replace(context, betting_spot_index=spot_index)


def add_bet(context: GameContext, amount: float) -> GameContext:
    spot = context.betting_spot
    new_spot = replace(spot, bet=spot.bet + amount)
    new_context = replace(context.with_spot(new_spot), bankroll=context.bankroll - amount)

    _emit(
        EngineEventType.PLAYER_BET,
        {
            "spot_index": spot.id,
            "bet_type": "main",
            "amount": amount,
            "total": new_spot.bet,
            "bankroll": new_context.bankroll,
        },
    )
    return new_context


def double_bet(context: GameContext) -> GameContext:
    return add_bet(context, context.betting_spot.bet)


def add_side_bet(context: GameContext, bet_type: SideBetType, amount: float) -> GameContext:
    spot = context.betting_spot
    side_bets = spot.side_bets.with_amount(bet_type, spot.side_bets.amount(bet_type) + amount)
    new_context = replace(
        context.with_spot(replace(spot, side_bets=side_bets)),
        bankroll=context.bankroll - amount,
    )

    _emit(
        EngineEventType.PLAYER_BET,
        {
            "spot_index": spot.id,
            "bet_type": bet_type.value,
            "amount": amount,
            "total": side_bets.amount(bet_type),
            "bankroll": new_context.bankroll,
        },
    )
    return new_context


def clear_bet(context: GameContext) -> GameContext:
    spot = context.betting_spot
    refund = spot.total_wager
    new_context = replace(
        context.with_spot(SpotState(id=spot.id)), bankroll=context.bankroll + refund
    )
    _emit(
        EngineEventType.BETS_CLEARED,
        {"spot_indices": [spot.id], "refund": refund, "bankroll": new_context.bankroll},
    )
    return new_context


def clear_all_bets(context: GameContext) -> GameContext:
    refund = context.total_wagers
    new_context = replace(
        context, spots=empty_spots(), bankroll=context.bankroll + refund
    )
    _emit(
        EngineEventType.BETS_CLEARED,
        {
            "spot_indices": [spot.id for spot in context.spots if spot.total_wager > 0],
            "refund": refund,
            "bankroll": new_context.bankroll,
        },
    )
    return new_context


def place_previous_bets(context: GameContext) -> GameContext:
    """
    Put last round's bets back on the table.

    Anything currently on the table is returned to the bankroll first, so the
    bankroll ends up charged exactly the previous round's total.
    """
    previous = context.previous_bets
    refund = context.total_wagers
    spots = tuple(
        SpotState(id=spot.id, bet=spot_bet.bet, side_bets=spot_bet.side_bets)
        for spot, spot_bet in zip(context.spots, previous.spots)
    )
    new_context = replace(
        context, spots=spots, bankroll=context.bankroll + refund - previous.total
    )
    logger.debug("Rebet of %s placed (refunded %s)", previous.total, refund)
    _emit(
        EngineEventType.PLAYER_BET,
        {
            "spot_index": None,
            "bet_type": "rebet",
            "amount": previous.total,
            "total": new_context.total_wagers,
            "bankroll": new_context.bankroll,
        },
    )
    return new_context


def reset_table(context: GameContext, message: str = "Place your bets") -> GameContext:
    """Clear spots, dealer hand and insurance; the bankroll carries over."""
    return replace(
        context,
        spots=empty_spots(),
        dealer_hand=(),
        active_spot_index=0,
        betting_spot_index=DEFAULT_BETTING_SPOT,
        insurance_bet=0,
        message=message,
    )


# Dealing


def _card_dealt(card: Card, spot_index: Optional[int], hand_index: int = 0) -> None:
    data = {
        "is_dealer": spot_index is None,
        "spot_index": spot_index,
        "hand_index": hand_index,
        "is_hole_card": not card.face_up,
    }
    # A face-down card is announced without its identity
    data["card"] = str(card) if card.face_up else None
    _emit(EngineEventType.CARD_DEALT, data)


def deal_initial_cards(context: GameContext, rng: Optional[random.Random] = None) -> GameContext:
    """
    Deal the opening cards, settle side bets and remember the bets for rebet.

    The shoe is replaced by a fresh one first if it has dropped below the
    reshuffle point; no reshuffle happens later in the round.
    """
    shoe = context.shoe
    if should_reshuffle(shoe):
        shoe = create_shoe(rng=rng)
        logger.info("Reshuffled: fresh shoe of %d cards", len(shoe))
        _emit(EngineEventType.SHUFFLE, {"cards_in_shoe": len(shoe)})

    spots = []
    for spot in context.spots:
        if not spot.is_funded:
            spots.append(spot)
            continue
        first, shoe = deal_card(shoe)
        second, shoe = deal_card(shoe)
        _card_dealt(first, spot.id)
        _card_dealt(second, spot.id)
        hand = HandState(cards=(first, second), bet=spot.bet)
        spots.append(replace(spot, hands=(hand,), active_hand_index=0))

    up_card, shoe = deal_card(shoe)
    hole_card, shoe = deal_card(shoe, face_up=False)
    _card_dealt(up_card, None)
    _card_dealt(hole_card, None, hand_index=0)
    dealer_hand = (up_card, hole_card)

    # Side bets are decided and paid now, before any main-hand play
    side_bet_winnings = 0
    for index, spot in enumerate(spots):
        if not spot.is_funded:
            continue
        player_cards = spot.hands[0].cards
        results = SideBetResults(
            twenty_one_plus_three=(
                evaluate_21_plus_3(player_cards, up_card)
                if spot.side_bets.twenty_one_plus_three > 0
                else None
            ),
            perfect_pairs=(
                evaluate_perfect_pairs(player_cards)
                if spot.side_bets.perfect_pairs > 0
                else None
            ),
        )
        for bet_type in SideBetType:
            stake = spot.side_bets.amount(bet_type)
            if stake <= 0:
                continue
            result = results.result(bet_type)
            payout = side_bet_payout(bet_type, result, stake)
            side_bet_winnings += payout
            _emit(
                EngineEventType.SIDE_BET_RESULT,
                {
                    "spot_index": spot.id,
                    "bet_type": bet_type.value,
                    "stake": stake,
                    "result": result.value if result else None,
                    "payout": payout,
                },
            )
        spots[index] = replace(spot, side_bet_results=results)

    previous_bets = PreviousBets(
        spots=tuple(
            SpotBet(bet=spot.bet, side_bets=spot.side_bets) for spot in context.spots
        )
    )

    funded = [spot.id for spot in spots if spot.is_funded]
    playable = [spot.id for spot in spots if spot.is_funded and not spot.hands[0].is_blackjack]
    if playable:
        active_spot_index = playable[0]
    else:
        active_spot_index = funded[0] if funded else 0

    round_number = context.round_number + 1
    new_context = replace(
        context,
        shoe=shoe,
        spots=tuple(spots),
        dealer_hand=dealer_hand,
        active_spot_index=active_spot_index,
        message=f"{_spot_label(active_spot_index)} - Your turn",
        previous_bets=previous_bets,
        bankroll=context.bankroll + side_bet_winnings,
        insurance_bet=0,
        round_number=round_number,
    )

    logger.info(
        "Round %d dealt to spots %s, %d cards left in shoe",
        round_number,
        [index + 1 for index in funded],
        len(shoe),
    )
    _emit(
        EngineEventType.ROUND_STARTED,
        {
            "round_number": round_number,
            "spot_indices": funded,
            "total_wagered": context.total_wagers,
            "side_bet_winnings": side_bet_winnings,
            "cards_remaining": len(shoe),
        },
    )
    return new_context


# Dealer ace offers


def take_even_money(context: GameContext) -> GameContext:
    """Settle every live blackjack as a 1:1 win."""
    bankroll = context.bankroll
    spots = []
    for spot in context.spots:
        if not spot.is_funded:
            spots.append(spot)
            continue
        hands = []
        for hand_index, hand in enumerate(spot.hands):
            if hand.is_blackjack and not hand.is_settled:
                bankroll += hand.bet * EVEN_MONEY_PAYOUT
                hand = replace(hand, is_settled=True, result=HandResult.WIN)
                _emit(
                    EngineEventType.HAND_RESULT,
                    {
                        "spot_index": spot.id,
                        "hand_index": hand_index,
                        "result": hand.result.value,
                        "payout": hand.bet * EVEN_MONEY_PAYOUT,
                    },
                )
            hands.append(hand)
        spots.append(replace(spot, hands=tuple(hands)))

    _emit(EngineEventType.EVEN_MONEY_DECISION, {"accepted": True, "bankroll": bankroll})
    return replace(
        context, spots=tuple(spots), bankroll=bankroll, message="Even money taken"
    )


def decline_even_money(context: GameContext) -> GameContext:
    _emit(EngineEventType.EVEN_MONEY_DECISION, {"accepted": False, "bankroll": context.bankroll})
    return replace(context, message="Even money declined")


def offer_insurance(context: GameContext) -> GameContext:
    cost = context.total_main_bets / 2
    _emit(EngineEventType.INSURANCE_OFFERED, {"cost": cost, "bankroll": context.bankroll})
    return replace(context, message=f"Insurance? Costs ${cost:g}")


def take_insurance(context: GameContext) -> GameContext:
    cost = context.total_main_bets / 2
    new_context = replace(
        context,
        insurance_bet=cost,
        bankroll=context.bankroll - cost,
        message="Insurance taken",
    )
    _emit(
        EngineEventType.INSURANCE_DECISION,
        {"accepted": True, "amount": cost, "bankroll": new_context.bankroll},
    )
    return new_context


def decline_insurance(context: GameContext) -> GameContext:
    _emit(
        EngineEventType.INSURANCE_DECISION,
        {"accepted": False, "amount": 0, "bankroll": context.bankroll},
    )
    return replace(context, message="Insurance declined")


# Player turn


def _player_action(context: GameContext, action: str) -> None:
    spot = context.current_spot
    _emit(
        EngineEventType.PLAYER_ACTION,
        {
            "spot_index": spot.id,
            "hand_index": spot.active_hand_index,
            "action": action,
        },
    )


def _award_triple_sevens(hand: HandState, spot_index: int, hand_index: int):
    """Pay the triple-seven bonus, once per hand, at the hand's current bet."""
    if hand.triple_sevens_awarded or not is_triple_seven(hand.cards):
        return hand, 0
    bonus = hand.bet
    _emit(
        EngineEventType.TRIPLE_SEVENS_BONUS,
        {"spot_index": spot_index, "hand_index": hand_index, "bonus": bonus},
    )
    return replace(hand, triple_sevens_awarded=True), bonus


def _settle_bust(hand: HandState, spot_index: int, hand_index: int) -> HandState:
    _emit(
        EngineEventType.HAND_BUSTED,
        {"spot_index": spot_index, "hand_index": hand_index, "value": hand.value},
    )
    return replace(hand, is_settled=True, result=HandResult.LOSE)


def hit(context: GameContext) -> GameContext:
    _player_action(context, "hit")
    spot = context.current_spot
    hand_index = spot.active_hand_index
    card, shoe = deal_card(context.shoe)
    _card_dealt(card, spot.id, hand_index)

    hand = replace(spot.current_hand, cards=spot.current_hand.cards + (card,))
    hand, bonus = _award_triple_sevens(hand, spot.id, hand_index)

    message = f"{_spot_label(spot.id)} - Your turn"
    if hand.is_bust:
        hand = _settle_bust(hand, spot.id, hand_index)
        message = "Bust!"
    if bonus > 0:
        message = f"Triple 7s! Bonus +${bonus:g}!"

    return replace(
        context.with_hand(spot.id, hand_index, hand),
        shoe=shoe,
        bankroll=context.bankroll + bonus,
        message=message,
    )


def stand(context: GameContext) -> GameContext:
    _player_action(context, "stand")
    return replace(context, message=f"{_spot_label(context.active_spot_index)} - Stand")


def double_down(context: GameContext) -> GameContext:
    """Double the bet, take exactly one card; the hand is finished."""
    _player_action(context, "double")
    spot = context.current_spot
    hand_index = spot.active_hand_index
    original = spot.current_hand
    card, shoe = deal_card(context.shoe)
    _card_dealt(card, spot.id, hand_index)

    hand = replace(
        original,
        cards=original.cards + (card,),
        bet=original.bet * 2,
        is_doubled=True,
    )
    hand, bonus = _award_triple_sevens(hand, spot.id, hand_index)

    message = "Doubled down"
    if hand.is_bust:
        hand = _settle_bust(hand, spot.id, hand_index)
        message = "Doubled down - Bust!"
    if bonus > 0:
        message = f"Doubled + Triple 7s! Bonus +${bonus:g}!"

    return replace(
        context.with_hand(spot.id, hand_index, hand),
        shoe=shoe,
        bankroll=context.bankroll - original.bet + bonus,
        message=message,
    )


def split(context: GameContext) -> GameContext:
    """
    Split the current pair into two hands of one original card each.

    Each new hand receives one card at once. Split aces are locked: they
    take no further card and no further action.
    """
    _player_action(context, "split")
    spot = context.current_spot
    hand_index = spot.active_hand_index
    hand = spot.current_hand
    first, second = hand.cards
    splitting_aces = first.rank is Rank.ACE

    first_draw, shoe = deal_card(context.shoe)
    second_draw, shoe = deal_card(shoe)

    new_hands = (
        HandState(
            cards=(first, first_draw),
            bet=hand.bet,
            is_split=True,
            is_split_aces=splitting_aces,
        ),
        HandState(
            cards=(second, second_draw),
            bet=hand.bet,
            is_split=True,
            is_split_aces=splitting_aces,
        ),
    )
    hands = spot.hands[:hand_index] + new_hands + spot.hands[hand_index + 1 :]
    _card_dealt(first_draw, spot.id, hand_index)
    _card_dealt(second_draw, spot.id, hand_index + 1)
    _emit(
        EngineEventType.HAND_SPLIT,
        {
            "spot_index": spot.id,
            "hand_index": hand_index,
            "split_aces": splitting_aces,
            "hand_count": len(hands),
        },
    )

    return replace(
        context.with_spot(replace(spot, hands=hands)),
        shoe=shoe,
        bankroll=context.bankroll - hand.bet,
        message="Hand split",
    )


def surrender(context: GameContext) -> GameContext:
    """Give up the hand and take back half the bet."""
    _player_action(context, "surrender")
    spot = context.current_spot
    hand = replace(spot.current_hand, is_settled=True, result=HandResult.SURRENDER)
    refund = hand.bet / 2
    _emit(
        EngineEventType.HAND_RESULT,
        {
            "spot_index": spot.id,
            "hand_index": spot.active_hand_index,
            "result": hand.result.value,
            "payout": refund,
        },
    )
    return replace(
        context.with_hand(spot.id, spot.active_hand_index, hand),
        bankroll=context.bankroll + refund,
        message="Surrendered",
    )


def move_to_next_hand(context: GameContext) -> GameContext:
    spot = context.current_spot
    next_index = spot.active_hand_index + 1
    return replace(
        context.with_spot(replace(spot, active_hand_index=next_index)),
        message=f"{_spot_label(spot.id)} - Hand {next_index + 1}",
    )


def move_to_next_spot(context: GameContext) -> GameContext:
    next_index = next_active_spot_index(context.spots, context.active_spot_index)
    if next_index == NO_SPOT:
        raise RuntimeError("No spot left to move to")
    return replace(
        context,
        active_spot_index=next_index,
        message=f"{_spot_label(next_index)} - Your turn",
    )


# Dealer turn


def reveal_dealer_card(context: GameContext) -> GameContext:
    if all(card.face_up for card in context.dealer_hand):
        return context
    for card in context.dealer_hand:
        if not card.face_up:
            _emit(EngineEventType.CARD_REVEALED, {"card": str(card.turned(True))})
    return replace(
        context,
        dealer_hand=tuple(card.turned(True) for card in context.dealer_hand),
        message="Dealer's turn",
    )


def dealer_hit(context: GameContext) -> GameContext:
    card, shoe = deal_card(context.shoe)
    dealer_hand = context.dealer_hand + (card,)
    _card_dealt(card, None)
    _emit(
        EngineEventType.DEALER_ACTION,
        {"action": "hit", "card": str(card), "value": full_hand_value(dealer_hand)},
    )
    return replace(context, shoe=shoe, dealer_hand=dealer_hand)


# Settlement


def _resolve_hand(
    hand: HandState, dealer_value: int, dealer_bust: bool, dealer_blackjack: bool
):
    """Decide an unsettled hand; returns the result and the amount credited."""
    player_value = hand.full_value
    if player_value > 21:
        return HandResult.LOSE, 0
    if hand.is_natural and not dealer_blackjack:
        return HandResult.BLACKJACK, hand.bet * BLACKJACK_PAYOUT
    if dealer_bust:
        return HandResult.WIN, hand.bet * WIN_PAYOUT
    if hand.is_natural and dealer_blackjack:
        return HandResult.PUSH, hand.bet * PUSH_PAYOUT
    if dealer_blackjack:
        return HandResult.LOSE, 0
    if player_value > dealer_value:
        return HandResult.WIN, hand.bet * WIN_PAYOUT
    if player_value < dealer_value:
        return HandResult.LOSE, 0
    return HandResult.PUSH, hand.bet * PUSH_PAYOUT


# Net profit and gross amount returned per unit of bet, by result
_HAND_NET = {
    HandResult.BLACKJACK: BLACKJACK_PAYOUT - 1,
    HandResult.WIN: WIN_PAYOUT - 1,
    HandResult.LOSE: -1,
    HandResult.SURRENDER: -0.5,
    HandResult.PUSH: 0,
}
_HAND_GROSS = {
    HandResult.BLACKJACK: BLACKJACK_PAYOUT,
    HandResult.WIN: WIN_PAYOUT,
    HandResult.LOSE: 0,
    HandResult.SURRENDER: 0.5,
    HandResult.PUSH: PUSH_PAYOUT,
}


def settle_all_spots(context: GameContext) -> GameContext:
    """
    Settle insurance and every open hand against the dealer.

    Hands settled earlier in the round (bust, surrender, even money) keep
    their result but still count toward the round totals. ``last_win`` is
    the round's net profit or loss over insurance, main bets and side bets;
    ``last_win_amount`` is the gross amount returned. Triple-seven bonuses
    were credited when they were drawn and stay out of both totals.
    """
    dealer_value = full_hand_value(context.dealer_hand)
    dealer_bust = dealer_value > 21
    dealer_blackjack = is_blackjack(context.dealer_hand)

    bankroll = context.bankroll
    last_win = 0
    last_win_amount = 0
    wins = 0
    losses = 0

    if context.insurance_bet > 0:
        if dealer_blackjack:
            bankroll += context.insurance_bet * INSURANCE_PAYOUT
            last_win += context.insurance_bet * (INSURANCE_PAYOUT - 1)
            last_win_amount += context.insurance_bet * INSURANCE_PAYOUT
        else:
            last_win -= context.insurance_bet

    spots = []
    for spot in context.spots:
        if not spot.is_funded:
            spots.append(spot)
            continue

        hands = []
        for hand_index, hand in enumerate(spot.hands):
            if not hand.is_settled:
                result, payout = _resolve_hand(
                    hand, dealer_value, dealer_bust, dealer_blackjack
                )
                bankroll += payout
                hand = replace(hand, is_settled=True, result=result)
                _emit(
                    EngineEventType.HAND_RESULT,
                    {
                        "spot_index": spot.id,
                        "hand_index": hand_index,
                        "result": result.value,
                        "payout": payout,
                    },
                )

            if hand.result in (HandResult.WIN, HandResult.BLACKJACK):
                wins += 1
            elif hand.result in (HandResult.LOSE, HandResult.SURRENDER):
                losses += 1

            last_win += hand.bet * _HAND_NET[hand.result]
            last_win_amount += hand.bet * _HAND_GROSS[hand.result]
            hands.append(hand)

        # Side bets were paid at the deal; they only enter the round totals here
        for bet_type in SideBetType:
            stake = spot.side_bets.amount(bet_type)
            if stake <= 0:
                continue
            result = spot.side_bet_results.result(bet_type)
            if result is None:
                last_win -= stake
            else:
                multiplier = SIDE_BET_PAYOUTS[bet_type][result]
                last_win += stake * (multiplier - 1)
                last_win_amount += stake * multiplier

        spots.append(replace(spot, hands=tuple(hands)))

    if wins > 0 and losses == 0:
        message = "You win!"
    elif losses > 0 and wins == 0:
        message = "Dealer wins"
    elif wins > 0 and losses > 0:
        message = "Mixed results"
    else:
        message = "Push"

    new_context = replace(
        context,
        spots=tuple(spots),
        bankroll=bankroll,
        insurance_bet=0,
        message=message,
        last_win=last_win,
        last_win_amount=last_win_amount,
    )

    logger.info(
        "Round %d settled: %s (net %+g, returned %g, bankroll %g)",
        context.round_number,
        message,
        last_win,
        last_win_amount,
        bankroll,
    )
    _emit(
        EngineEventType.BANKROLL_UPDATED,
        {"bankroll": bankroll, "change": bankroll - context.bankroll},
    )
    _emit(
        EngineEventType.ROUND_ENDED,
        {
            "round_number": context.round_number,
            "message": message,
            "last_win": last_win,
            "last_win_amount": last_win_amount,
            "bankroll": bankroll,
            "dealer_value": dealer_value,
            "dealer_blackjack": dealer_blackjack,
        },
    )
    return new_context
