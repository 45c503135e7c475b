"""
Configuration management.
"""

from .config import (
    KeyLevelsConfig,
    LevelVisibility,
    LogConfig,
    SessionWindowConfig,
    apply_env_overrides,
    default_sessions,
    load_config,
    session_window_problems,
)

from .constants import (
    DEFAULT_SESSIONS,
    TIMEFRAME_LEVELS,
    TIMEFRAME_TRACKER_KEYS,
    WEEKDAY_NAMES,
)

__all__ = [
    # Config classes
    "KeyLevelsConfig",
    "LevelVisibility",
    "LogConfig",
    "SessionWindowConfig",
    # Loaders / helpers
    "apply_env_overrides",
    "default_sessions",
    "load_config",
    "session_window_problems",
    # Constants
    "DEFAULT_SESSIONS",
    "TIMEFRAME_LEVELS",
    "TIMEFRAME_TRACKER_KEYS",
    "WEEKDAY_NAMES",
]
