"""
Ordered container for level trackers.

Provides:
- LevelTrackerState: Builds trackers from specs and drives them per step

The container owns the ordering guard: a step whose bar index does not
strictly increase is refused before any tracker sees it, so tracker
state is only ever defined for bars appended at increasing indices.

Example:
    specs = [
        {"type": "timeframe", "key": "daily", "params": {"timeframe": "D"}},
        {"type": "weekday_range", "key": "weekday_range", "params": {"weekday": 0}},
        {"type": "session_window", "key": "london",
         "params": {"name": "London", "start": "08:00", "end": "16:00"}},
    ]

    state = LevelTrackerState(specs)
    state.update(step)
    pdh = state.get_value("daily.prev_high")
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from ..errors import InvalidConfigurationError, OutOfOrderBarError
from .base import BaseLevelTracker
from .registry import TRACKER_REGISTRY

if TYPE_CHECKING:
    from .base import StepData


class LevelTrackerState:
    """
    Incremental state for all level trackers of one primary series.

    Tracker specs are validated at construction time:
    - Type must be registered in TRACKER_REGISTRY
    - Keys must be present and unique

    Attributes:
        trackers: Dict mapping tracker keys to tracker instances.
        last_bar_idx: Index of the last accepted bar (-1 before any).
    """

    def __init__(self, tracker_specs: list[dict[str, Any]]) -> None:
        self.trackers: dict[str, BaseLevelTracker] = {}
        self._update_order: list[str] = []
        self.last_bar_idx: int = -1

        self._build_trackers(tracker_specs)

    def _build_trackers(self, specs: list[dict[str, Any]]) -> None:
        for spec in specs:
            tracker_type = spec.get("type")
            key = spec.get("key")
            params = dict(spec.get("params") or {})

            if not tracker_type:
                raise InvalidConfigurationError(
                    "tracker spec missing 'type' field",
                    fix="add 'type' to the spec, e.g. {'type': 'timeframe', 'key': 'daily', ...}",
                )

            if not key:
                raise InvalidConfigurationError(
                    f"tracker spec for type '{tracker_type}' missing 'key' field",
                    fix=f"add 'key' to the spec, e.g. {{'type': '{tracker_type}', 'key': '<unique_key>'}}",
                )

            if key in self.trackers:
                raise InvalidConfigurationError(
                    f"duplicate tracker key '{key}'",
                    fix="use unique keys for each tracker",
                )

            if tracker_type not in TRACKER_REGISTRY:
                available = ", ".join(sorted(TRACKER_REGISTRY)) or "(none registered)"
                raise InvalidConfigurationError(
                    f"unknown tracker type '{tracker_type}' (available: {available})",
                    fix="use one of the available types, or register a new tracker",
                )

            cls = TRACKER_REGISTRY[tracker_type]
            self.trackers[key] = cls.validate_and_create(tracker_type, key, params)
            self._update_order.append(key)

    def check_order(self, bar_idx: int) -> None:
        """
        Raise if bar_idx does not advance past the last accepted bar.

        Raises:
            OutOfOrderBarError: If bar_idx <= last_bar_idx.
        """
        if bar_idx <= self.last_bar_idx:
            raise OutOfOrderBarError(bar_idx, self.last_bar_idx)

    def advance(self, bar_idx: int) -> None:
        """Accept a bar without updating trackers (used during warm-up)."""
        self.check_order(bar_idx)
        self.last_bar_idx = bar_idx

    def update(self, step: "StepData") -> None:
        """
        Update every tracker with one primary step, in definition order.

        Raises:
            OutOfOrderBarError: If the step's bar index doesn't increase.
                No tracker is touched in that case.
        """
        bar_idx = step.bar.idx
        self.check_order(bar_idx)
        self.last_bar_idx = bar_idx

        for key in self._update_order:
            self.trackers[key].update(bar_idx, step)

    def get_tracker(self, key: str) -> BaseLevelTracker:
        if key not in self.trackers:
            available = ", ".join(self._update_order) or "(none defined)"
            raise KeyError(
                f"Tracker '{key}' not defined.\n"
                f"\n"
                f"Available trackers: {available}\n"
                f"\n"
                f"Fix: Use one of the available tracker keys."
            )
        return self.trackers[key]

    def get_value(self, path: str) -> Any:
        """
        Get a tracker output by path.

        Args:
            path: "<tracker_key>.<output_key>", e.g. "london.snapshot_high".

        Raises:
            ValueError: If path is not in the expected format.
            KeyError: If the tracker or output does not exist.
        """
        parts = path.split(".")
        if len(parts) != 2 or not all(parts):
            raise ValueError(
                f"Invalid path format: '{path}'\n"
                f"\n"
                f"Expected format: <tracker_key>.<output_key>\n"
                f"\n"
                f"Fix: e.g. 'daily.prev_high' or 'london.snapshot_open'"
            )
        tracker_key, output_key = parts
        return self.get_tracker(tracker_key).get_value_safe(output_key)

    def list_trackers(self) -> list[str]:
        """Return list of tracker keys in update order."""
        return list(self._update_order)

    def list_outputs(self, key: str) -> list[str]:
        return self.get_tracker(key).get_output_keys()

    def list_all_paths(self) -> list[str]:
        """Every readable path, in update order."""
        return [
            f"{key}.{output}"
            for key in self._update_order
            for output in self.trackers[key].get_output_keys()
        ]

    def to_json(self) -> dict[str, Any]:
        """Serialize current outputs (dates as ISO strings) for inspection."""
        data: dict[str, Any] = {"last_bar_idx": self.last_bar_idx, "trackers": {}}
        for key in self._update_order:
            tracker = self.trackers[key]
            values = {
                k: v.isoformat() if isinstance(v, date) else v
                for k, v in tracker.get_all_values().items()
            }
            data["trackers"][key] = {"type": tracker._type, "values": values}
        return data

    def reset(self) -> None:
        """Drop all tracker state and the ordering guard."""
        self.last_bar_idx = -1
        for tracker in self.trackers.values():
            tracker.reset()

    def __repr__(self) -> str:
        return f"LevelTrackerState(trackers=[{', '.join(self._update_order)}])"
