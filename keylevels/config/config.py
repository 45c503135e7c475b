"""
Configuration management for the key level trackers.

Configuration is validated once at startup and immutable afterwards.
Sources, in increasing priority:
    1. Dataclass defaults (mirroring the classic indicator defaults)
    2. YAML file (load_config)
    3. Environment variables, after .env is loaded (apply_env_overrides)
"""

import os
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import tzinfo
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from ..errors import InvalidConfigurationError
from ..utils.datetime_utils import (
    SECONDS_PER_DAY,
    format_time_of_day,
    parse_time_of_day,
    resolve_timezone,
)
from .constants import (
    DEFAULT_SESSIONS,
    DEFAULT_TIMEZONE,
    DEFAULT_WARMUP_BARS,
    DEFAULT_WEEKDAY,
    ENV_LOG_DIR,
    ENV_LOG_LEVEL,
    ENV_TIMEZONE,
    ENV_WARMUP_BARS,
    TIMEFRAME_LEVELS,
    TIMEFRAME_TRACKER_KEYS,
    WEEKDAY_NAMES,
    WEEKDAY_TAG_PREFIXES,
    WEEKDAY_TRACKER_KEY,
)


def session_window_problems(start: int, end: int, name: str = "session") -> List[str]:
    """
    List what is wrong with a session window, empty if it is valid.

    Windows are half-open [start, end) in seconds since midnight and must
    not wrap midnight: 0 <= start < end <= 86400. Nothing is clamped.
    """
    problems = []
    if not isinstance(start, int) or not isinstance(end, int):
        return [f"{name}: start/end must be integer seconds, got start={start!r} end={end!r}"]
    if start < 0 or start >= SECONDS_PER_DAY:
        problems.append(f"{name}: start={start} outside [0, {SECONDS_PER_DAY})")
    if end <= 0 or end > SECONDS_PER_DAY:
        problems.append(f"{name}: end={end} outside (0, {SECONDS_PER_DAY}]")
    if start >= end:
        problems.append(
            f"{name}: start={start} must be before end={end} "
            f"(wrapping windows are not supported)"
        )
    return problems


@dataclass(frozen=True)
class SessionWindowConfig:
    """
    One recurring intraday session window.

    Attributes:
        name: Display name used in labels ("London" -> "London High")
        prefix: Tag prefix ("Lon" -> "LonH", "LonL", "LonO")
        start: Window start, seconds since midnight (inclusive)
        end: Window end, seconds since midnight (exclusive)
        show_hl: Publish the session high/low
        show_open: Publish the session open
    """
    name: str
    prefix: str
    start: int
    end: int
    show_hl: bool = False
    show_open: bool = False

    @property
    def key(self) -> str:
        """Tracker key derived from the name ("New York" -> "new_york")."""
        return self.name.strip().lower().replace(" ", "_")

    @property
    def enabled(self) -> bool:
        return self.show_hl or self.show_open

    @property
    def tags(self) -> Tuple[str, ...]:
        """Tags this session owns, whether or not they are shown."""
        return (f"{self.prefix}H", f"{self.prefix}L", f"{self.prefix}O")

    def problems(self) -> List[str]:
        problems = []
        if not self.name or not self.name.strip():
            problems.append("session name must not be empty")
        if not self.prefix or not self.prefix.strip():
            problems.append(f"{self.name}: prefix must not be empty")
        problems.extend(session_window_problems(self.start, self.end, self.name or "session"))
        return problems

    def validate(self) -> "SessionWindowConfig":
        problems = self.problems()
        if problems:
            raise InvalidConfigurationError(
                problems,
                fix="use 0 <= start < end <= 86400, e.g. start: \"08:00\", end: \"16:00\"",
            )
        return self

    def describe(self) -> str:
        return f"{self.name} [{format_time_of_day(self.start)}, {format_time_of_day(self.end)})"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SessionWindowConfig":
        """
        Build from a config mapping.

        A session naming one of the built-in windows (London, New York,
        Asia) inherits its prefix and bounds unless they are given.
        """
        if not isinstance(raw, dict):
            raise InvalidConfigurationError(f"session entry must be a mapping, got {raw!r}")

        name = str(raw.get("name", "")).strip()
        base = next(
            (s for s in DEFAULT_SESSIONS if s["name"].lower() == name.lower()),
            {},
        )
        unknown = set(raw) - {f.name for f in fields(cls)}
        if unknown:
            raise InvalidConfigurationError(
                f"session '{name}': unknown keys {sorted(unknown)}",
                fix="allowed keys are name, prefix, start, end, show_hl, show_open",
            )

        try:
            start = parse_time_of_day(raw.get("start", base.get("start")), f"{name}.start")
            end = parse_time_of_day(raw.get("end", base.get("end")), f"{name}.end")
        except ValueError as e:
            raise InvalidConfigurationError(str(e))

        return cls(
            name=name or base.get("name", ""),
            prefix=str(raw.get("prefix", base.get("prefix", ""))),
            start=start,
            end=end,
            show_hl=bool(raw.get("show_hl", False)),
            show_open=bool(raw.get("show_open", False)),
        )


def default_sessions(show_hl: bool = False, show_open: bool = False) -> Tuple[SessionWindowConfig, ...]:
    """London, New York and Asia windows; all hidden unless requested."""
    return tuple(
        SessionWindowConfig(
            name=s["name"],
            prefix=s["prefix"],
            start=parse_time_of_day(s["start"]),
            end=parse_time_of_day(s["end"]),
            show_hl=show_hl,
            show_open=show_open,
        )
        for s in DEFAULT_SESSIONS
    )


@dataclass(frozen=True)
class LevelVisibility:
    """Which timeframe and weekday levels are published."""
    daily_open: bool = True
    prev_day_hl: bool = True
    weekly_open: bool = True
    prev_week_hl: bool = True
    monthly_open: bool = True
    prev_month_hl: bool = True
    yearly_open: bool = True
    current_year_hl: bool = False
    weekday_range: bool = True

    def is_enabled(self, flag: str) -> bool:
        return bool(getattr(self, flag))

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "LevelVisibility":
        if not raw:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise InvalidConfigurationError(
                f"unknown level flags {sorted(unknown)}",
                fix=f"use any of {sorted(known)}",
            )
        return cls(**{k: bool(v) for k, v in raw.items()})


@dataclass(frozen=True)
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass(frozen=True)
class KeyLevelsConfig:
    """
    Complete configuration consumed by LevelSnapshotAggregator.

    Attributes:
        timezone: Reference zone for session windows and weekday/date logic
        intraday: Primary series is intraday; daily levels are only
                  published when True
        weekday: Weekday tracked by the range tracker (Monday == 0)
        warmup_bars: Primary bars skipped before trackers start updating
        visibility: Timeframe / weekday level toggles
        sessions: Session windows, in tracker update order
        log: Logging settings
    """
    timezone: str = DEFAULT_TIMEZONE
    intraday: bool = True
    weekday: int = DEFAULT_WEEKDAY
    warmup_bars: int = DEFAULT_WARMUP_BARS
    visibility: LevelVisibility = field(default_factory=LevelVisibility)
    sessions: Tuple[SessionWindowConfig, ...] = field(default_factory=default_sessions)
    log: LogConfig = field(default_factory=LogConfig)

    def __post_init__(self):
        # Accept lists from callers; store an immutable tuple
        if not isinstance(self.sessions, tuple):
            object.__setattr__(self, "sessions", tuple(self.sessions))

    @property
    def tzinfo(self) -> tzinfo:
        return resolve_timezone(self.timezone)

    @property
    def enabled_sessions(self) -> Tuple[SessionWindowConfig, ...]:
        return tuple(s for s in self.sessions if s.enabled)

    def validate(self) -> "KeyLevelsConfig":
        """
        Validate the whole configuration, reporting every problem at once.

        Returns:
            self, for chaining

        Raises:
            InvalidConfigurationError: If anything is invalid
        """
        problems: List[str] = []

        try:
            resolve_timezone(self.timezone)
        except ValueError as e:
            problems.append(str(e))

        weekday_ok = (
            isinstance(self.weekday, int)
            and not isinstance(self.weekday, bool)
            and 0 <= self.weekday <= 6
        )
        if not weekday_ok:
            problems.append(f"weekday must be 0 (Monday) .. 6 (Sunday), got {self.weekday!r}")

        if (
            isinstance(self.warmup_bars, bool)
            or not isinstance(self.warmup_bars, int)
            or self.warmup_bars < 0
        ):
            problems.append(f"warmup_bars must be an integer >= 0, got {self.warmup_bars!r}")

        builtin_tags = _builtin_tags(self.weekday if weekday_ok else None)
        builtin_keys = set(TIMEFRAME_TRACKER_KEYS.values()) | {WEEKDAY_TRACKER_KEY}
        seen_prefixes: Dict[str, str] = {}
        seen_keys: Dict[str, str] = {}
        for session in self.sessions:
            problems.extend(session.problems())
            if session.prefix in seen_prefixes:
                problems.append(
                    f"{session.name}: prefix '{session.prefix}' already used by {seen_prefixes[session.prefix]}"
                )
            seen_prefixes.setdefault(session.prefix, session.name)
            if session.key in seen_keys:
                problems.append(f"duplicate session name '{session.name}'")
            seen_keys.setdefault(session.key, session.name)
            if session.key in builtin_keys:
                problems.append(
                    f"{session.name}: key '{session.key}' is taken by a built-in tracker"
                )
            for tag in session.tags:
                if tag in builtin_tags:
                    problems.append(
                        f"{session.name}: tag '{tag}' clashes with {builtin_tags[tag]}"
                    )

        if self.log.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"log level must be DEBUG/INFO/WARNING/ERROR/CRITICAL, got '{self.log.level}'")

        if problems:
            raise InvalidConfigurationError(problems)
        return self

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "KeyLevelsConfig":
        """
        Build a config from a plain mapping (e.g., parsed YAML).

        Missing keys keep their defaults. The result is not validated;
        call validate() before use.
        """
        raw = dict(raw or {})
        known = {"timezone", "intraday", "weekday", "warmup_bars", "levels", "sessions", "log"}
        unknown = set(raw) - known
        if unknown:
            raise InvalidConfigurationError(
                f"unknown top-level keys {sorted(unknown)}",
                fix=f"use any of {sorted(known)}",
            )

        kwargs: Dict[str, Any] = {}
        if "timezone" in raw:
            kwargs["timezone"] = str(raw["timezone"])
        if "intraday" in raw:
            kwargs["intraday"] = bool(raw["intraday"])
        if "weekday" in raw:
            kwargs["weekday"] = _parse_weekday(raw["weekday"])
        if "warmup_bars" in raw:
            kwargs["warmup_bars"] = raw["warmup_bars"]
        if "levels" in raw:
            kwargs["visibility"] = LevelVisibility.from_dict(raw["levels"])
        if "sessions" in raw:
            kwargs["sessions"] = tuple(
                SessionWindowConfig.from_dict(s) for s in (raw["sessions"] or [])
            )
        if "log" in raw:
            log_raw = raw["log"] or {}
            kwargs["log"] = LogConfig(
                level=str(log_raw.get("level", "INFO")),
                log_dir=log_raw.get("log_dir"),
            )
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain types (round-trips through from_dict)."""
        data = asdict(self)
        data["levels"] = data.pop("visibility")
        data["sessions"] = [
            {**s, "start": format_time_of_day(s["start"]), "end": format_time_of_day(s["end"])}
            for s in data["sessions"]
        ]
        return data

    def summary(self) -> str:
        """Multi-line human-readable summary."""
        enabled_flags = [f.name for f in fields(self.visibility) if getattr(self.visibility, f.name)]
        lines = [
            f"Time zone:   {self.timezone}",
            f"Intraday:    {self.intraday}",
            f"Range day:   {WEEKDAY_NAMES[self.weekday] if 0 <= self.weekday <= 6 else self.weekday}",
            f"Warm-up:     {self.warmup_bars} bars",
            f"Levels:      {', '.join(enabled_flags) or '(none)'}",
            "Sessions:",
        ]
        for s in self.sessions:
            shown = [label for label, on in (("H/L", s.show_hl), ("Open", s.show_open)) if on]
            lines.append(f"  {s.describe()}: {', '.join(shown) or 'hidden'}")
        return "\n".join(lines)


def _builtin_tags(weekday: Optional[int]) -> Dict[str, str]:
    """Tag -> label for every timeframe level and the weekday range."""
    tags = {
        tag: label
        for entries in TIMEFRAME_LEVELS.values()
        for tag, label, _output, _flag in entries
    }
    if weekday is not None:
        prefix, name = WEEKDAY_TAG_PREFIXES[weekday], WEEKDAY_NAMES[weekday]
        tags[f"{prefix}H"] = f"{name} High"
        tags[f"{prefix}L"] = f"{name} Low"
    return tags


def _parse_weekday(value: Any) -> Any:
    """Accept 0-6 or a weekday name; anything else is left for validate()."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        for i, name in enumerate(WEEKDAY_NAMES):
            if lowered in (name.lower(), name.lower()[:3]):
                return i
    return value


def load_config(path: str | Path) -> KeyLevelsConfig:
    """
    Load and validate a YAML configuration file.

    Args:
        path: Path to a .yml/.yaml file

    Returns:
        Validated KeyLevelsConfig

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidConfigurationError: If the content is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Key levels config not found at {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidConfigurationError(f"invalid YAML in {config_path}: {e}")

    if raw is not None and not isinstance(raw, dict):
        raise InvalidConfigurationError(f"top level of {config_path} must be a mapping")

    return KeyLevelsConfig.from_dict(raw).validate()


def apply_env_overrides(config: KeyLevelsConfig, env_file: Optional[str] = ".env") -> KeyLevelsConfig:
    """
    Apply KEYLEVELS_* environment overrides on top of a config.

    Loads env_file (if it exists) first, without overriding variables
    already set in the process environment.

    Returns:
        New validated KeyLevelsConfig
    """
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    changes: Dict[str, Any] = {}
    tz = os.getenv(ENV_TIMEZONE)
    if tz:
        changes["timezone"] = tz.strip()

    warmup = os.getenv(ENV_WARMUP_BARS)
    if warmup:
        try:
            changes["warmup_bars"] = int(warmup)
        except ValueError:
            raise InvalidConfigurationError(f"{ENV_WARMUP_BARS} must be an integer, got '{warmup}'")

    level = os.getenv(ENV_LOG_LEVEL)
    log_dir = os.getenv(ENV_LOG_DIR)
    if level or log_dir:
        changes["log"] = LogConfig(
            level=level or config.log.level,
            log_dir=log_dir or config.log.log_dir,
        )

    return replace(config, **changes).validate()
