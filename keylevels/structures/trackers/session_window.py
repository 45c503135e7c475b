"""
Recurring intraday session window (London, New York, Asia, ...).

Two-state machine driven by the bar's time of day in the reference zone:

    Inactive -> Active    first bar inside [start, end): capture open/high/low
    Active   -> Active    later bar inside: extend high/low
    Active   -> Inactive  first bar outside: publish the SessionSnapshot

The in-progress session is never published. The snapshot only changes on
Active -> Inactive, and survives the next session until that one closes.

Config example:
    trackers:
      - type: session_window
        key: london
        params:
          name: London
          start: "08:00"
          end: "16:00"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ...config.config import session_window_problems
from ...errors import InvalidConfigurationError
from ...utils.datetime_utils import format_time_of_day, parse_time_of_day
from ..base import BarData, BaseLevelTracker, StepData
from ..registry import register_tracker
from ..types import SessionPhase

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """
    A closed session.

    Attributes:
        open: Open of the first bar inside the window.
        high: Highest high inside the window.
        low: Lowest low inside the window.
        anchor_idx: Primary index of the first bar inside the window.
    """

    open: float
    high: float
    low: float
    anchor_idx: int


@register_tracker("session_window")
class SessionWindowTracker(BaseLevelTracker):
    """
    Accumulates one half-open time-of-day window and snapshots it on exit.

    Parameters:
        start: Window start (seconds since midnight, "HH:MM" or time). Inclusive.
        end: Window end, exclusive. Must be after start; no midnight wrap.
        name: Display name (default: "session").

    Outputs:
        active: True while inside the window.
        open, high, low, start_idx: In-progress session (None when inactive
            and never activated).
        snapshot_open, snapshot_high, snapshot_low, snapshot_anchor_idx:
            Last closed session (None until the first close).
    """

    REQUIRED_PARAMS: list[str] = ["start", "end"]
    OPTIONAL_PARAMS: dict[str, Any] = {"name": "session"}

    @classmethod
    def _validate_params(
        cls, tracker_type: str, key: str, params: dict[str, Any]
    ) -> None:
        try:
            start = parse_time_of_day(params["start"], f"{key}.start")
            end = parse_time_of_day(params["end"], f"{key}.end")
        except ValueError as e:
            raise InvalidConfigurationError(f"Tracker '{key}': {e}")

        problems = session_window_problems(start, end, params.get("name") or key)
        if problems:
            raise InvalidConfigurationError(
                problems,
                fix='start: "08:00", end: "16:00"  # 0 <= start < end <= 24:00',
            )

    def __init__(self, params: dict[str, Any]) -> None:
        self.name: str = params.get("name") or "session"
        self.start: int = parse_time_of_day(params["start"], "start")
        self.end: int = parse_time_of_day(params["end"], "end")
        self.reset()

    def reset(self) -> None:
        self.phase = SessionPhase.INACTIVE
        self.open: float | None = None
        self.high: float | None = None
        self.low: float | None = None
        self.start_idx: int | None = None
        self.snapshot: SessionSnapshot | None = None

    @property
    def active(self) -> bool:
        return self.phase is SessionPhase.ACTIVE

    def contains(self, time_of_day: int) -> bool:
        """Half-open window membership: start <= t < end."""
        return self.start <= time_of_day < self.end

    def update_time(self, time_of_day: int, bar: BarData) -> SessionSnapshot | None:
        """
        Advance the state machine by one primary bar.

        Args:
            time_of_day: Bar time in seconds since midnight (reference zone).
            bar: The primary bar.

        Returns:
            The snapshot published by this call, or None if the session
            did not close on this bar.
        """
        inside = self.contains(time_of_day)

        if inside and not self.active:
            self.phase = SessionPhase.ACTIVE
            self.open = bar.open
            self.high = bar.high
            self.low = bar.low
            self.start_idx = bar.idx
            logger.debug("%s session opened at idx=%d", self.name, bar.idx)
            return None

        if inside:
            self.high = max(self.high, bar.high)
            self.low = min(self.low, bar.low)
            return None

        if self.active:
            self.snapshot = SessionSnapshot(
                open=self.open,
                high=self.high,
                low=self.low,
                anchor_idx=self.start_idx,
            )
            self.phase = SessionPhase.INACTIVE
            logger.debug(
                "%s session closed at idx=%d: O=%s H=%s L=%s",
                self.name, bar.idx, self.open, self.high, self.low,
            )
            return self.snapshot

        return None

    def update(self, bar_idx: int, step: StepData) -> None:
        self.update_time(step.time_of_day, step.bar)

    def get_output_keys(self) -> list[str]:
        return [
            "active",
            "open",
            "high",
            "low",
            "start_idx",
            "snapshot_open",
            "snapshot_high",
            "snapshot_low",
            "snapshot_anchor_idx",
        ]

    def get_value(self, key: str) -> Any:
        if key == "active":
            return self.active
        elif key == "open":
            return self.open
        elif key == "high":
            return self.high
        elif key == "low":
            return self.low
        elif key == "start_idx":
            return self.start_idx
        elif key.startswith("snapshot_") and key in self.get_output_keys():
            if self.snapshot is None:
                return None
            return getattr(self.snapshot, key[len("snapshot_"):])
        raise KeyError(key)

    def __repr__(self) -> str:
        return (
            f"SessionWindowTracker(name={self.name!r}, "
            f"window=[{format_time_of_day(self.start)}, {format_time_of_day(self.end)}))"
        )
