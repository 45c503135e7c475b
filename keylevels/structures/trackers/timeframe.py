"""
Higher-timeframe open and extremes tracker.

One instance per auxiliary timeframe (D, W, M, 12M). Exposes the open of
the in-progress period and the high/low of the most recently closed
period. The yearly instance is configured to read the in-progress bar
instead, so its extremes are the running high/low of the current year.

Config example:
    trackers:
      - type: timeframe
        key: weekly
        params:
          timeframe: W

      - type: timeframe
        key: yearly
        params:
          timeframe: 12M
          extremes: current
          min_history: 0

Access:
    state.get_value("weekly.prev_high")
"""

from __future__ import annotations

import logging
from typing import Any

from ...errors import InvalidConfigurationError
from ...utils.timeframes import AUX_TIMEFRAMES, validate_aux_tf
from ..base import BaseLevelTracker, StepData
from ..registry import register_tracker
from ..types import ExtremesSource

logger = logging.getLogger(__name__)


@register_tracker("timeframe")
class TimeframeTracker(BaseLevelTracker):
    """
    Rollover-anchored open/high/low for one auxiliary timeframe.

    Rollover is detected by index identity: when the auxiliary series'
    latest bar index differs from the last one seen, a new period began
    and the anchor moves to the current primary bar. The anchor never
    moves otherwise, however often the values are refreshed.

    Parameters:
        timeframe: Auxiliary timeframe ("D", "W", "M", "12M").
        extremes: "previous" reads the closed bar's high/low,
                  "current" the in-progress bar's (default: "previous").
        min_history: Lowest auxiliary index accepted (default: 1).

    Outputs:
        open: Open of the in-progress period.
        prev_high: High of the last closed period (running high for "current").
        prev_low: Low of the last closed period (running low for "current").
        anchor_idx: Primary index of the first bar of the current period.
        last_aux_idx: Last auxiliary index seen.

    Performance:
        - update(): O(1)
        - get_value(): O(1)
    """

    REQUIRED_PARAMS: list[str] = ["timeframe"]
    OPTIONAL_PARAMS: dict[str, Any] = {
        "extremes": ExtremesSource.PREVIOUS.value,
        "min_history": 1,
    }

    @classmethod
    def _validate_params(
        cls, tracker_type: str, key: str, params: dict[str, Any]
    ) -> None:
        try:
            validate_aux_tf(str(params["timeframe"]))
        except ValueError as e:
            raise InvalidConfigurationError(
                f"Tracker '{key}': {e}",
                fix=f"timeframe: W  # one of {list(AUX_TIMEFRAMES)}",
            )

        extremes = params.get("extremes", ExtremesSource.PREVIOUS.value)
        valid = [s.value for s in ExtremesSource]
        if extremes not in valid:
            raise InvalidConfigurationError(
                f"Tracker '{key}': 'extremes' must be one of {valid}, got {extremes!r}",
                fix="extremes: previous  # or 'current' for running extremes",
            )

        min_history = params.get("min_history", 1)
        if isinstance(min_history, bool) or not isinstance(min_history, int) or min_history < 0:
            raise InvalidConfigurationError(
                f"Tracker '{key}': 'min_history' must be integer >= 0, got {min_history!r}",
                fix="min_history: 1  # 0 only for current-period extremes",
            )

    def __init__(self, params: dict[str, Any]) -> None:
        self.timeframe: str = validate_aux_tf(str(params["timeframe"]))
        self.extremes = ExtremesSource(params.get("extremes", ExtremesSource.PREVIOUS.value))
        self.min_history: int = params.get("min_history", 1)
        self.reset()

    def reset(self) -> None:
        self.last_aux_idx: int | None = None
        self.anchor_idx: int | None = None
        self.open: float | None = None
        self.prev_high: float | None = None
        self.prev_low: float | None = None

    def update_series(
        self,
        aux_idx: int,
        aux_open: float,
        aux_high: float | None,
        aux_low: float | None,
        primary_idx: int,
    ) -> bool:
        """
        Refresh from the latest auxiliary state.

        Args:
            aux_idx: Latest aggregated auxiliary bar index.
            aux_open: Open of the in-progress auxiliary bar.
            aux_high: High to publish (closed bar, or in-progress for "current").
            aux_low: Low to publish.
            primary_idx: Current primary bar index.

        Returns:
            True if this call was a rollover, False otherwise
            (including the insufficient-history no-op).
        """
        if aux_idx < self.min_history:
            return False

        rolled = aux_idx != self.last_aux_idx
        if rolled:
            self.last_aux_idx = aux_idx
            self.anchor_idx = primary_idx
            logger.debug(
                "%s rollover: aux_idx=%d anchor_idx=%d", self.timeframe, aux_idx, primary_idx
            )

        # Values are refreshed on every call; feeds may revise them intrabar
        self.open = aux_open
        self.prev_high = aux_high
        self.prev_low = aux_low
        return rolled

    def update(self, bar_idx: int, step: StepData) -> None:
        aux = step.aux.get(self.timeframe)
        if aux is None:
            return

        if self.extremes is ExtremesSource.CURRENT:
            high, low = aux.high, aux.low
        else:
            # No closed bar yet: same as not enough history
            if aux.prev_high is None or aux.prev_low is None:
                return
            high, low = aux.prev_high, aux.prev_low

        self.update_series(aux.idx, aux.open, high, low, bar_idx)

    def get_output_keys(self) -> list[str]:
        return ["open", "prev_high", "prev_low", "anchor_idx", "last_aux_idx"]

    def get_value(self, key: str) -> float | int | None:
        if key == "open":
            return self.open
        elif key == "prev_high":
            return self.prev_high
        elif key == "prev_low":
            return self.prev_low
        elif key == "anchor_idx":
            return self.anchor_idx
        elif key == "last_aux_idx":
            return self.last_aux_idx
        raise KeyError(key)

    def __repr__(self) -> str:
        return (
            f"TimeframeTracker(timeframe={self.timeframe!r}, "
            f"extremes={self.extremes.value!r}, min_history={self.min_history})"
        )
