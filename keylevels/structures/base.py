"""
Base class and data structures for incremental level trackers.

Provides:
- BarData: Immutable primary bar
- AuxBarData: Immutable view of one auxiliary timeframe at a primary step
- StepData: Everything a tracker may read for one primary step
- BaseLevelTracker: Abstract base class for all trackers

All trackers must inherit from BaseLevelTracker and implement the
required abstract methods. The base class provides validation
infrastructure with fail-loud errors including actionable fix suggestions.

Performance Contract:
- update(): O(1)
- get_value(): O(1) always
- get_all_values(): O(k) where k = number of output keys
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping

from ..errors import InvalidConfigurationError


@dataclass(frozen=True, slots=True)
class BarData:
    """
    Single primary bar.

    Immutable once delivered. Primary bars are strictly increasing in
    idx and timestamp.

    Attributes:
        idx: Sequence index (monotonically increasing).
        timestamp: Bar timestamp (naive values are taken as UTC).
        open: Open price.
        high: High price.
        low: Low price.
        close: Close price.
        volume: Volume (not used by the trackers).

    Example:
        >>> bar = BarData(
        ...     idx=100,
        ...     timestamp=datetime(2024, 3, 4, 8, 0),
        ...     open=5100.0,
        ...     high=5110.5,
        ...     low=5098.0,
        ...     close=5105.25,
        ... )
        >>> bar.close
        5105.25
    """

    idx: int
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


@dataclass(frozen=True, slots=True)
class AuxBarData:
    """
    Latest known state of one auxiliary timeframe.

    Attributes:
        idx: Index of the latest aggregated bar (-1 when the series
             has no bar yet). Changes exactly once per rollover.
        open: Open of the in-progress bar.
        high: High of the in-progress bar so far.
        low: Low of the in-progress bar so far.
        prev_high: High of the most recently closed bar (None if none).
        prev_low: Low of the most recently closed bar (None if none).

    Example:
        >>> daily = AuxBarData(idx=41, open=5100.0, high=5120.0, low=5090.0,
        ...                    prev_high=5131.0, prev_low=5062.5)
        >>> daily.prev_high
        5131.0
    """

    idx: int
    open: float
    high: float
    low: float
    prev_high: float | None = None
    prev_low: float | None = None


@dataclass(frozen=True, slots=True)
class StepData:
    """
    One primary step as seen by trackers.

    Calendar fields are computed once per step by the aggregator in the
    configured reference time zone, so every tracker agrees on them.

    The aux field is stored as MappingProxyType for true immutability.
    Pass a regular dict; it will be wrapped automatically.

    Attributes:
        bar: The primary bar.
        aux: Auxiliary timeframe views keyed by canonical timeframe.
        session_date: Calendar date of the bar.
        weekday: Weekday of the bar (Monday == 0).
        time_of_day: Seconds since midnight.
    """

    bar: BarData
    aux: Mapping[str, AuxBarData]
    session_date: date
    weekday: int
    time_of_day: int

    def __post_init__(self) -> None:
        """Wrap aux dict in MappingProxyType for true immutability."""
        if isinstance(self.aux, dict):
            # Use object.__setattr__ to bypass frozen=True
            object.__setattr__(self, "aux", MappingProxyType(self.aux))


class BaseLevelTracker(ABC):
    """
    Abstract base class for all incremental level trackers.

    Each tracker exclusively owns its state. Callers only drive update()
    and read outputs through get_value().

    Class Attributes:
        REQUIRED_PARAMS: List of parameter names that must be provided.
        OPTIONAL_PARAMS: Dict of optional params with their default values.

    Abstract Methods:
        update(bar_idx, step): Process one primary step.
        get_output_keys(): Return list of readable output keys.
        get_value(key): Get output by key. Must be O(1).
        reset(): Return to the freshly-constructed state.

    Example:
        @register_tracker("last_close")
        class LastClose(BaseLevelTracker):
            REQUIRED_PARAMS = []
            OPTIONAL_PARAMS = {}

            def __init__(self, params: dict):
                self._value = None

            def update(self, bar_idx: int, step: StepData) -> None:
                self._value = step.bar.close

            def get_output_keys(self) -> list[str]:
                return ["value"]

            def get_value(self, key: str) -> float | None:
                if key == "value":
                    return self._value
                raise KeyError(key)

            def reset(self) -> None:
                self._value = None
    """

    # Class attributes - subclasses MUST define these
    REQUIRED_PARAMS: list[str] = []
    OPTIONAL_PARAMS: dict[str, Any] = {}

    # Instance attributes set by validate_and_create
    _key: str = ""
    _type: str = ""

    @classmethod
    def validate_and_create(
        cls,
        tracker_type: str,
        key: str,
        params: dict[str, Any],
    ) -> "BaseLevelTracker":
        """
        Validate parameters, then create instance.

        This is the factory method for creating tracker instances.
        It performs comprehensive validation before instantiation.

        Args:
            tracker_type: The tracker type name (for error messages).
            key: The unique key for this tracker instance.
            params: Parameter dict.

        Returns:
            Configured tracker instance.

        Raises:
            InvalidConfigurationError: If params are invalid.
        """
        # Check required params
        missing_params = [p for p in cls.REQUIRED_PARAMS if p not in params]
        if missing_params:
            param_lines = "\n".join(
                f"      {p}: <value>  # REQUIRED" for p in missing_params
            )
            raise InvalidConfigurationError(
                f"Tracker '{key}' (type: {tracker_type}) missing required params: {missing_params}",
                fix=(
                    f"\n  - type: {tracker_type}\n"
                    f"    key: {key}\n"
                    f"    params:\n"
                    f"{param_lines}"
                ),
            )

        # Check unknown params
        allowed = set(cls.REQUIRED_PARAMS) | set(cls.OPTIONAL_PARAMS)
        unknown_params = sorted(set(params) - allowed)
        if unknown_params:
            raise InvalidConfigurationError(
                f"Tracker '{key}' (type: {tracker_type}) got unknown params: {unknown_params}",
                fix=f"allowed params are {sorted(allowed)}",
            )

        # Type-specific validation (subclass hook)
        cls._validate_params(tracker_type, key, params)

        # Create instance
        instance = cls({**cls.OPTIONAL_PARAMS, **params})
        instance._key = key
        instance._type = tracker_type

        return instance

    @classmethod
    def _validate_params(
        cls, tracker_type: str, key: str, params: dict[str, Any]
    ) -> None:
        """
        Override for type-specific parameter validation.

        Called after checking required params but before instantiation.
        Subclasses should raise InvalidConfigurationError with an
        actionable fix suggestion.
        """
        pass

    @abstractmethod
    def update(self, bar_idx: int, step: StepData) -> None:
        """
        Process one primary step.

        Args:
            bar_idx: Current primary bar index.
            step: Primary bar, auxiliary views and calendar fields.
        """
        pass

    @abstractmethod
    def get_output_keys(self) -> list[str]:
        """
        List of readable output keys.

        Returns:
            List of string keys that can be passed to get_value().
        """
        pass

    @abstractmethod
    def get_value(self, key: str) -> Any:
        """
        Get output by key. Must be O(1).

        Unset values are returned as None.

        Raises:
            KeyError: If key is not valid.
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop all accumulated state."""
        pass

    def get_value_safe(self, key: str) -> Any:
        """
        Get output with key validation and helpful error messages.

        Raises:
            KeyError: If key is not valid, with suggestions.
        """
        valid_keys = self.get_output_keys()
        if key not in valid_keys:
            raise KeyError(
                f"Tracker '{self._key}' (type: {self._type}) has no output '{key}'\n"
                f"\n"
                f"Available outputs: {valid_keys}\n"
                f"\n"
                f"Fix: Use one of the available output keys above."
            )
        return self.get_value(key)

    def get_all_values(self) -> dict[str, Any]:
        """
        Return all output values as a dictionary.

        Useful for debugging and serialization.
        """
        return {key: self.get_value(key) for key in self.get_output_keys()}
