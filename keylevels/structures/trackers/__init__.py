"""
Incremental level trackers.

Each tracker is registered via @register_tracker and built by
LevelTrackerState from a {type, key, params} spec.

Available Trackers:
- timeframe: Rollover-anchored open and extremes of one auxiliary timeframe
- weekday_range: High/low of the latest target weekday
- session_window: Recurring time-of-day window with closed-session snapshots
"""

# Import trackers to trigger registration
from .session_window import SessionSnapshot, SessionWindowTracker
from .timeframe import TimeframeTracker
from .weekday_range import WeekdayRangeTracker

__all__ = [
    "SessionSnapshot",
    "SessionWindowTracker",
    "TimeframeTracker",
    "WeekdayRangeTracker",
]
