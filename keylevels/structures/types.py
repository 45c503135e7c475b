"""
Shared tracker type definitions.

This module is the CANONICAL location for tracker-related enums.
"""

from enum import Enum


class TimeframeRole(str, Enum):
    """
    Auxiliary timeframes feeding the timeframe trackers.

    Values are the canonical timeframe strings from utils.timeframes.
    """

    DAILY = "D"
    WEEKLY = "W"
    MONTHLY = "M"
    YEARLY = "12M"


class ExtremesSource(str, Enum):
    """Which auxiliary bar a timeframe tracker reads its high/low from."""

    PREVIOUS = "previous"  # Most recently closed bar (prior day/week/month)
    CURRENT = "current"    # In-progress bar (current year so far)


class SessionPhase(int, Enum):
    """Session window state machine states."""

    INACTIVE = 0
    ACTIVE = 1
