"""
keylevels - multi-timeframe key level tracking.

Derives prior-period opens and extremes, current-year extremes, a weekday
range and session ranges from a time-ordered primary bar stream plus the
latest state of the daily, weekly, monthly and yearly series.
"""

from .config import (
    KeyLevelsConfig,
    LevelVisibility,
    SessionWindowConfig,
    apply_env_overrides,
    default_sessions,
    load_config,
)
from .errors import InvalidConfigurationError, KeyLevelsError, OutOfOrderBarError
from .structures import (
    AuxBarData,
    BarData,
    Level,
    LevelSnapshotAggregator,
    LevelTrackerState,
    PublishedLevels,
    SessionSnapshot,
    SessionWindowTracker,
    TimeframeTracker,
    WeekdayRangeTracker,
    run_levels_batch,
)
from .utils import get_logger, setup_logger

__version__ = "0.1.0"

__all__ = [
    "KeyLevelsConfig",
    "LevelVisibility",
    "SessionWindowConfig",
    "apply_env_overrides",
    "default_sessions",
    "load_config",
    "InvalidConfigurationError",
    "KeyLevelsError",
    "OutOfOrderBarError",
    "AuxBarData",
    "BarData",
    "Level",
    "LevelSnapshotAggregator",
    "LevelTrackerState",
    "PublishedLevels",
    "SessionSnapshot",
    "SessionWindowTracker",
    "TimeframeTracker",
    "WeekdayRangeTracker",
    "run_levels_batch",
    "get_logger",
    "setup_logger",
]
