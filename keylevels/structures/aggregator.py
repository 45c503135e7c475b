"""
Per-bar level publication.

Provides:
- Level: One published reference level
- PublishedLevels: The full level set for one primary bar
- LevelSnapshotAggregator: Drives all trackers and publishes levels

The aggregator builds its trackers from a validated KeyLevelsConfig in a
fixed order (timeframe trackers D -> W -> M -> 12M, then the weekday
tracker, then sessions in config order) and publishes a fresh, read-only
level set on every accepted primary bar. Renderers treat each set as a
full replacement.

Example:
    config = KeyLevelsConfig(sessions=default_sessions(show_hl=True))
    aggregator = LevelSnapshotAggregator(config)

    for bar, aux in feed:
        published = aggregator.on_bar(bar, aux)
        for level in published:
            draw(level.tag, level.price, level.bars_back(bar.idx))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from ..config.config import KeyLevelsConfig, apply_env_overrides, load_config
from ..config.constants import (
    INTRADAY_ONLY_TIMEFRAMES,
    TIMEFRAME_LEVELS,
    TIMEFRAME_TRACKER_KEYS,
    WEEKDAY_NAMES,
    WEEKDAY_TAG_PREFIXES,
    WEEKDAY_TRACKER_KEY,
)
from ..errors import OutOfOrderBarError
from ..utils.datetime_utils import calendar_fields
from ..utils.logger import setup_logger
from ..utils.timeframes import AUX_TIMEFRAMES, validate_aux_tf
from .base import AuxBarData, BarData, StepData
from .state import LevelTrackerState
from .types import ExtremesSource, TimeframeRole

# Trackers register themselves on import
from . import trackers  # noqa: F401

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Level:
    """
    One published reference level.

    Attributes:
        tag: Stable identifier ("PDH", "MonL", "LonO", ...).
        price: Level price.
        anchor_idx: Primary bar where the value became current.
        label: Human-readable label ("Prev Day High").
    """

    tag: str
    price: float
    anchor_idx: int
    label: str

    def bars_back(self, current_idx: int) -> int:
        """Bars between the anchor and current_idx, never negative."""
        return max(0, current_idx - self.anchor_idx)


@dataclass(frozen=True, slots=True)
class PublishedLevels:
    """
    Level set published for one primary bar.

    Iterating yields Level objects in publication order.
    """

    bar_idx: int
    timestamp: datetime | None
    levels: Mapping[str, Level] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.levels, dict):
            object.__setattr__(self, "levels", MappingProxyType(self.levels))

    def get(self, tag: str) -> Level | None:
        return self.levels.get(tag)

    def tags(self) -> list[str]:
        return list(self.levels)

    def prices(self) -> dict[str, float]:
        return {tag: level.price for tag, level in self.levels.items()}

    def __contains__(self, tag: object) -> bool:
        return tag in self.levels

    def __len__(self) -> int:
        return len(self.levels)

    def __iter__(self) -> Iterator[Level]:
        return iter(self.levels.values())


@dataclass(frozen=True, slots=True)
class _LevelSource:
    """Where a published tag reads its price and anchor from."""

    tag: str
    label: str
    tracker_key: str
    price_output: str
    anchor_output: str


class LevelSnapshotAggregator:
    """
    Drives every tracker once per primary bar and publishes the level set.

    Only trackers with at least one visible level are created. A level is
    withheld while its value is unset (None), e.g. until an auxiliary
    series has a closed bar or a session has closed once.

    Out-of-order bars are ignored: a warning is logged, no tracker is
    touched, and the previously published set is returned unchanged.

    Attributes:
        config: The validated configuration.
        state: Ordered tracker container.
        published: The most recently published level set.
    """

    def __init__(self, config: KeyLevelsConfig | None = None) -> None:
        self.config = (config or KeyLevelsConfig()).validate()
        self._tz = self.config.tzinfo
        self._bars_seen = 0

        specs, sources = self._plan(self.config)
        self._sources: tuple[_LevelSource, ...] = tuple(sources)
        self._aux_timeframes = frozenset(
            spec["params"]["timeframe"] for spec in specs if spec["type"] == "timeframe"
        )
        self.state = LevelTrackerState(specs)
        self.published = PublishedLevels(bar_idx=-1, timestamp=None, levels={})

        logger.info(
            "Key levels configured: trackers=[%s] levels=%d tz=%s warmup=%d",
            ", ".join(self.state.list_trackers()),
            len(self._sources),
            self.config.timezone,
            self.config.warmup_bars,
        )

    @classmethod
    def from_yaml(
        cls, path: str | Path, env_file: str | None = ".env"
    ) -> "LevelSnapshotAggregator":
        """
        Build an aggregator from a YAML config plus KEYLEVELS_* overrides.

        Also configures the library logger from the resulting log settings.
        """
        config = apply_env_overrides(load_config(path), env_file=env_file)
        setup_logger(config.log.log_dir, config.log.level)
        return cls(config)

    @staticmethod
    def _plan(config: KeyLevelsConfig) -> tuple[list[dict[str, Any]], list[_LevelSource]]:
        """Tracker specs and level sources implied by the configuration."""
        specs: list[dict[str, Any]] = []
        sources: list[_LevelSource] = []
        visibility = config.visibility

        for tf in AUX_TIMEFRAMES:
            if tf in INTRADAY_ONLY_TIMEFRAMES and not config.intraday:
                continue
            entries = [e for e in TIMEFRAME_LEVELS[tf] if visibility.is_enabled(e[3])]
            if not entries:
                continue

            key = TIMEFRAME_TRACKER_KEYS[tf]
            params: dict[str, Any] = {"timeframe": tf}
            if tf == TimeframeRole.YEARLY.value:
                # Current-year extremes: in-progress bar, history from index 0
                params["extremes"] = ExtremesSource.CURRENT.value
                params["min_history"] = 0
            specs.append({"type": "timeframe", "key": key, "params": params})
            sources.extend(
                _LevelSource(tag, label, key, output, "anchor_idx")
                for tag, label, output, _flag in entries
            )

        if visibility.weekday_range:
            weekday = config.weekday
            specs.append({
                "type": "weekday_range",
                "key": WEEKDAY_TRACKER_KEY,
                "params": {"weekday": weekday},
            })
            prefix, name = WEEKDAY_TAG_PREFIXES[weekday], WEEKDAY_NAMES[weekday]
            sources.append(_LevelSource(f"{prefix}H", f"{name} High", WEEKDAY_TRACKER_KEY, "high", "anchor_idx"))
            sources.append(_LevelSource(f"{prefix}L", f"{name} Low", WEEKDAY_TRACKER_KEY, "low", "anchor_idx"))

        for session in config.enabled_sessions:
            specs.append({
                "type": "session_window",
                "key": session.key,
                "params": {"name": session.name, "start": session.start, "end": session.end},
            })
            if session.show_hl:
                sources.append(_LevelSource(
                    f"{session.prefix}H", f"{session.name} High", session.key,
                    "snapshot_high", "snapshot_anchor_idx",
                ))
                sources.append(_LevelSource(
                    f"{session.prefix}L", f"{session.name} Low", session.key,
                    "snapshot_low", "snapshot_anchor_idx",
                ))
            if session.show_open:
                sources.append(_LevelSource(
                    f"{session.prefix}O", f"{session.name} Open", session.key,
                    "snapshot_open", "snapshot_anchor_idx",
                ))

        return specs, sources

    @property
    def warming_up(self) -> bool:
        return self._bars_seen < self.config.warmup_bars

    def on_bar(
        self, bar: BarData, aux: Mapping[str, AuxBarData] | None = None
    ) -> PublishedLevels:
        """
        Process one primary bar and return the published level set.

        Args:
            bar: The primary bar.
            aux: Latest auxiliary state keyed by timeframe ("D", "W", "M",
                 "12M" or an alias). Missing timeframes are skipped, and so
                 are keys that are not auxiliary timeframes or feed no
                 tracker. When a timeframe is given twice, the canonical
                 key wins over an alias.

        Returns:
            The new PublishedLevels, or the previous one if the bar was
            rejected as out of order.
        """
        try:
            self.state.check_order(bar.idx)
        except OutOfOrderBarError as e:
            logger.warning(
                "Ignoring out-of-order bar idx=%d (last=%d)", e.bar_idx, e.last_idx
            )
            return self.published

        if self.warming_up:
            self.state.advance(bar.idx)
            self._bars_seen += 1
            if not self.warming_up:
                logger.info("Warm-up complete after %d bars (idx=%d)", self._bars_seen, bar.idx)
            self.published = PublishedLevels(bar_idx=bar.idx, timestamp=bar.timestamp, levels={})
            return self.published

        session_date, weekday, time_of_day = calendar_fields(bar.timestamp, self._tz)
        step = StepData(
            bar=bar,
            aux=self._resolve_aux(aux),
            session_date=session_date,
            weekday=weekday,
            time_of_day=time_of_day,
        )
        self.state.update(step)
        self._bars_seen += 1

        self.published = self._collect(bar)
        return self.published

    def _resolve_aux(
        self, aux: Mapping[str, AuxBarData] | None
    ) -> dict[str, AuxBarData]:
        resolved: dict[str, AuxBarData] = {}
        for name, view in (aux or {}).items():
            try:
                tf = validate_aux_tf(name) if isinstance(name, str) else None
            except ValueError:
                tf = None
            if tf is None:
                logger.debug("Skipping auxiliary series %r: not a supported timeframe", name)
                continue
            if tf not in self._aux_timeframes:
                continue
            if tf in resolved and name != tf:
                logger.debug("Skipping auxiliary series %r: %s already supplied", name, tf)
                continue
            resolved[tf] = view
        return resolved

    def _collect(self, bar: BarData) -> PublishedLevels:
        levels: dict[str, Level] = {}
        for source in self._sources:
            tracker = self.state.trackers[source.tracker_key]
            price = tracker.get_value(source.price_output)
            anchor = tracker.get_value(source.anchor_output)
            if price is None or anchor is None:
                continue
            levels[source.tag] = Level(
                tag=source.tag,
                price=float(price),
                anchor_idx=int(anchor),
                label=source.label,
            )
        return PublishedLevels(bar_idx=bar.idx, timestamp=bar.timestamp, levels=levels)

    @property
    def level_tags(self) -> list[str]:
        """Every tag this configuration can publish, in publication order."""
        return [source.tag for source in self._sources]

    def reset(self) -> None:
        """Start over as if no bar had been seen."""
        self.state.reset()
        self._bars_seen = 0
        self.published = PublishedLevels(bar_idx=-1, timestamp=None, levels={})

    def __repr__(self) -> str:
        return f"LevelSnapshotAggregator(trackers={self.state.list_trackers()})"
