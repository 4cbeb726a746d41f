"""
Host-facing engine for spotjack.

This package provides the table object that a presentation layer drives with
input events and reads snapshots from.
"""

from spotjack.engine.table import BlackjackTable

__all__ = ["BlackjackTable"]
