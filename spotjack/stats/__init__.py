"""
Session statistics collected from round events.
"""

from spotjack.stats.session import SessionStats

__all__ = ["SessionStats"]
