"""Table constants and payout tables for seven-spot blackjack."""

from enum import Enum


class SideBetType(Enum):
    """The two side wagers a spot can carry next to its main bet."""

    TWENTY_ONE_PLUS_THREE = "twenty_one_plus_three"
    PERFECT_PAIRS = "perfect_pairs"


class TwentyOnePlusThreeResult(Enum):
    """Winning tiers of the 21+3 side bet, best first."""

    SUITED_TRIPLE = "suited_triple"
    STRAIGHT_FLUSH = "straight_flush"
    THREE_OF_A_KIND = "three_of_a_kind"
    STRAIGHT = "straight"
    FLUSH = "flush"


class PerfectPairsResult(Enum):
    """Winning tiers of the Perfect Pairs side bet, best first."""

    PERFECT_PAIR = "perfect_pair"
    COLORED_PAIR = "colored_pair"
    MIXED_PAIR = "mixed_pair"


INITIAL_BANKROLL = 2500
MIN_BET = 5
DECK_COUNT = 6
RESHUFFLE_THRESHOLD = 0.25  # reshuffle when fewer than 25% of the cards remain
SPOT_COUNT = 7
MAX_HANDS_PER_SPOT = 4
DEFAULT_BETTING_SPOT = 3  # middle of the table
CHIP_VALUES = (5, 25, 100, 500, 1000)

DEALER_STANDS_ON = 17
BLACKJACK_TOTAL = 21

# Multipliers credited on a win, stake included
BLACKJACK_PAYOUT = 2.5
WIN_PAYOUT = 2
PUSH_PAYOUT = 1
EVEN_MONEY_PAYOUT = 2
INSURANCE_PAYOUT = 3

SIDE_BET_PAYOUTS = {
    SideBetType.TWENTY_ONE_PLUS_THREE: {
        TwentyOnePlusThreeResult.SUITED_TRIPLE: 101,  # 100:1
        TwentyOnePlusThreeResult.STRAIGHT_FLUSH: 41,  # 40:1
        TwentyOnePlusThreeResult.THREE_OF_A_KIND: 31,  # 30:1
        TwentyOnePlusThreeResult.STRAIGHT: 11,  # 10:1
        TwentyOnePlusThreeResult.FLUSH: 6,  # 5:1
    },
    SideBetType.PERFECT_PAIRS: {
        PerfectPairsResult.PERFECT_PAIR: 26,  # 25:1
        PerfectPairsResult.COLORED_PAIR: 13,  # 12:1
        PerfectPairsResult.MIXED_PAIR: 7,  # 6:1
    },
}
