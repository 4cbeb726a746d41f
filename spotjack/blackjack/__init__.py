"""
Blackjack rules: table constants, hand evaluation and side-bet evaluation.
"""
