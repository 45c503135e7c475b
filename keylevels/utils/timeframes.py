"""
Canonical auxiliary timeframe constants and validation.

Single source of truth for the higher timeframes the trackers read from.
"""


# Canonical auxiliary timeframes, in tracker update order
# 12M is a twelve-month aggregate used for the current-year levels
AUX_TIMEFRAMES = ("D", "W", "M", "12M")

# Common spellings accepted from configs and hosts
TIMEFRAME_ALIASES = {
    "d": "D",
    "1d": "D",
    "day": "D",
    "daily": "D",
    "w": "W",
    "1w": "W",
    "week": "W",
    "weekly": "W",
    "m": "M",
    "1m": "M",
    "month": "M",
    "monthly": "M",
    "12m": "12M",
    "1y": "12M",
    "y": "12M",
    "year": "12M",
    "yearly": "12M",
}


def validate_aux_tf(tf: str) -> str:
    """
    Validate an auxiliary timeframe is canonical format.

    Args:
        tf: Timeframe string (e.g., "D", "weekly", "12M")

    Returns:
        Validated canonical tf string

    Raises:
        ValueError: If tf is not a supported auxiliary timeframe
    """
    tf_clean = tf.strip()

    if tf_clean in AUX_TIMEFRAMES:
        return tf_clean

    # Note "1m" means one month here; primary minute bars never reach this table
    canonical = TIMEFRAME_ALIASES.get(tf_clean.lower())
    if canonical is not None:
        return canonical

    raise ValueError(
        f"Invalid auxiliary timeframe: '{tf}'. "
        f"Must be one of: {list(AUX_TIMEFRAMES)}"
    )
