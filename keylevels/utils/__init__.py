"""
Utility modules.
"""

from .logger import get_logger, setup_logger, KeyLevelsLogger
from .datetime_utils import (
    SECONDS_PER_DAY,
    resolve_timezone,
    to_reference_tz,
    time_of_day_seconds,
    calendar_fields,
    parse_time_of_day,
    format_time_of_day,
)
from .timeframes import AUX_TIMEFRAMES, validate_aux_tf

__all__ = [
    # Logger
    "get_logger",
    "setup_logger",
    "KeyLevelsLogger",
    # Time of day
    "SECONDS_PER_DAY",
    "resolve_timezone",
    "to_reference_tz",
    "time_of_day_seconds",
    "calendar_fields",
    "parse_time_of_day",
    "format_time_of_day",
    # Timeframes
    "AUX_TIMEFRAMES",
    "validate_aux_tf",
]
