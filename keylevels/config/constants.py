"""
Centralized constants for the key level trackers.

Level tags and labels are the stable identifiers handed to renderers.
Changing a tag breaks every downstream consumer keyed on it.
"""

from typing import Dict, List, Tuple


# ==================== Timeframe Trackers ====================

# Tracker key per auxiliary timeframe (update order: D -> W -> M -> 12M)
TIMEFRAME_TRACKER_KEYS: Dict[str, str] = {
    "D": "daily",
    "W": "weekly",
    "M": "monthly",
    "12M": "yearly",
}

# (tag, label, tracker output, visibility flag) per timeframe
TIMEFRAME_LEVELS: Dict[str, Tuple[Tuple[str, str, str, str], ...]] = {
    "D": (
        ("DO", "Daily Open", "open", "daily_open"),
        ("PDH", "Prev Day High", "prev_high", "prev_day_hl"),
        ("PDL", "Prev Day Low", "prev_low", "prev_day_hl"),
    ),
    "W": (
        ("WO", "Weekly Open", "open", "weekly_open"),
        ("PWH", "Prev Week High", "prev_high", "prev_week_hl"),
        ("PWL", "Prev Week Low", "prev_low", "prev_week_hl"),
    ),
    "M": (
        ("MO", "Monthly Open", "open", "monthly_open"),
        ("PMH", "Prev Month High", "prev_high", "prev_month_hl"),
        ("PML", "Prev Month Low", "prev_low", "prev_month_hl"),
    ),
    # Yearly "prev" outputs hold the running extremes of the active year
    "12M": (
        ("YO", "Yearly Open", "open", "yearly_open"),
        ("CYH", "Curr Year High", "prev_high", "current_year_hl"),
        ("CYL", "Curr Year Low", "prev_low", "current_year_hl"),
    ),
}

# Daily levels are only meaningful on an intraday primary series
INTRADAY_ONLY_TIMEFRAMES = frozenset({"D"})


# ==================== Weekday Range ====================

WEEKDAY_TRACKER_KEY = "weekday_range"

WEEKDAY_NAMES: List[str] = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]

# Tag prefix per weekday; Monday keeps the historical "MonH"/"MonL" tags
WEEKDAY_TAG_PREFIXES: List[str] = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


# ==================== Sessions ====================

# Windows in the reference zone (UTC unless configured otherwise)
DEFAULT_SESSIONS: List[Dict[str, str]] = [
    {"name": "London", "prefix": "Lon", "start": "08:00", "end": "16:00"},
    {"name": "New York", "prefix": "NY", "start": "13:30", "end": "20:00"},
    {"name": "Asia", "prefix": "As", "start": "00:00", "end": "09:00"},
]


# ==================== Defaults ====================

DEFAULT_TIMEZONE = "UTC"
DEFAULT_WEEKDAY = 0  # Monday
DEFAULT_WARMUP_BARS = 2


# ==================== Environment ====================

ENV_TIMEZONE = "KEYLEVELS_TIMEZONE"
ENV_WARMUP_BARS = "KEYLEVELS_WARMUP_BARS"
ENV_LOG_LEVEL = "KEYLEVELS_LOG_LEVEL"
ENV_LOG_DIR = "KEYLEVELS_LOG_DIR"
