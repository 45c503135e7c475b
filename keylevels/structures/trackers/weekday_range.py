"""
High/low range of one weekday (Monday by default).

The range restarts on the first bar of each new date that falls on the
target weekday and extends on every later bar of that date. Bars on other
weekdays leave it untouched, so Monday's range stays published all week.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from ...config.constants import WEEKDAY_NAMES
from ...errors import InvalidConfigurationError
from ..base import BaseLevelTracker, StepData
from ..registry import register_tracker

logger = logging.getLogger(__name__)


@register_tracker("weekday_range")
class WeekdayRangeTracker(BaseLevelTracker):
    """
    Range of the latest occurrence of a target weekday.

    Parameters:
        weekday: Target weekday, Monday == 0 (default: 0).

    Outputs:
        high: Highest high of that weekday so far.
        low: Lowest low of that weekday so far.
        anchor_idx: Primary index of the weekday's first bar.
        anchor_date: Date of the weekday being tracked.
    """

    REQUIRED_PARAMS: list[str] = []
    OPTIONAL_PARAMS: dict[str, Any] = {"weekday": 0}

    @classmethod
    def _validate_params(
        cls, tracker_type: str, key: str, params: dict[str, Any]
    ) -> None:
        weekday = params.get("weekday", 0)
        if isinstance(weekday, bool) or not isinstance(weekday, int) or not 0 <= weekday <= 6:
            raise InvalidConfigurationError(
                f"Tracker '{key}': 'weekday' must be integer 0..6, got {weekday!r}",
                fix="weekday: 0  # Monday",
            )

    def __init__(self, params: dict[str, Any]) -> None:
        self.weekday: int = params.get("weekday", 0)
        self.reset()

    def reset(self) -> None:
        self.anchor_date: date | None = None
        self.anchor_idx: int | None = None
        self.high: float | None = None
        self.low: float | None = None

    def update_bar(
        self,
        bar_date: date,
        bar_weekday: int,
        high: float,
        low: float,
        primary_idx: int,
    ) -> None:
        if bar_weekday != self.weekday:
            return

        if bar_date != self.anchor_date:
            self.anchor_date = bar_date
            self.anchor_idx = primary_idx
            self.high = high
            self.low = low
            logger.debug(
                "%s range started %s at idx=%d", WEEKDAY_NAMES[self.weekday], bar_date, primary_idx
            )
            return

        self.high = max(self.high, high)
        self.low = min(self.low, low)

    def update(self, bar_idx: int, step: StepData) -> None:
        self.update_bar(step.session_date, step.weekday, step.bar.high, step.bar.low, bar_idx)

    def get_output_keys(self) -> list[str]:
        return ["high", "low", "anchor_idx", "anchor_date"]

    def get_value(self, key: str) -> Any:
        if key == "high":
            return self.high
        elif key == "low":
            return self.low
        elif key == "anchor_idx":
            return self.anchor_idx
        elif key == "anchor_date":
            return self.anchor_date
        raise KeyError(key)

    def __repr__(self) -> str:
        return f"WeekdayRangeTracker(weekday={WEEKDAY_NAMES[self.weekday]!r})"
