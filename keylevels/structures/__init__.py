"""
Incremental key level tracking.

All trackers update bar-by-bar in O(1) and expose their values through
get_value(). The aggregator composes them and publishes the level set.

Public API:
-----------

Types (from types.py):
    TimeframeRole    - Auxiliary timeframes (D, W, M, 12M)
    ExtremesSource   - Closed vs in-progress auxiliary extremes
    SessionPhase     - Session state machine states

Base Classes (from base.py):
    BarData          - Immutable primary bar
    AuxBarData       - Immutable auxiliary timeframe view
    StepData         - One primary step as seen by trackers
    BaseLevelTracker - Abstract base class for all trackers

Registry (from registry.py):
    TRACKER_REGISTRY        - Global registry of tracker classes
    register_tracker        - Decorator to register tracker classes
    unregister_tracker      - Remove a tracker from registry
    get_tracker_info        - Get metadata about a registered tracker
    list_tracker_types      - List all registered tracker types

State Container (from state.py):
    LevelTrackerState       - Ordered tracker container with ordering guard

Aggregator (from aggregator.py):
    Level                    - One published level
    PublishedLevels          - Level set for one primary bar
    LevelSnapshotAggregator  - Drives trackers, publishes levels

Replay (from replay.py):
    run_levels_batch  - Replay the aggregator over pandas frames
    build_aux_view    - Causal alignment of one auxiliary frame

Trackers (from trackers/):
    TimeframeTracker      - Rollover-anchored open and extremes
    WeekdayRangeTracker   - Weekday high/low range
    SessionWindowTracker  - Session window state machine
    SessionSnapshot       - Closed session values

Example Usage:
--------------

    from keylevels.structures import LevelTrackerState, BarData

    state = LevelTrackerState([
        {"type": "session_window", "key": "london",
         "params": {"name": "London", "start": "08:00", "end": "16:00"}},
    ])
    state.update(step)
    state.get_value("london.snapshot_high")
"""

from .types import ExtremesSource, SessionPhase, TimeframeRole

from .base import AuxBarData, BarData, BaseLevelTracker, StepData

from .registry import (
    TRACKER_REGISTRY,
    get_tracker_info,
    list_tracker_types,
    register_tracker,
    unregister_tracker,
)

# Import trackers to trigger registration
from .trackers import (
    SessionSnapshot,
    SessionWindowTracker,
    TimeframeTracker,
    WeekdayRangeTracker,
)

from .state import LevelTrackerState

from .aggregator import Level, LevelSnapshotAggregator, PublishedLevels

from .replay import build_aux_view, run_levels_batch

__all__ = [
    # Types
    "ExtremesSource",
    "SessionPhase",
    "TimeframeRole",
    # Base
    "AuxBarData",
    "BarData",
    "BaseLevelTracker",
    "StepData",
    # Registry
    "TRACKER_REGISTRY",
    "get_tracker_info",
    "list_tracker_types",
    "register_tracker",
    "unregister_tracker",
    # Trackers
    "SessionSnapshot",
    "SessionWindowTracker",
    "TimeframeTracker",
    "WeekdayRangeTracker",
    # State
    "LevelTrackerState",
    # Aggregator
    "Level",
    "LevelSnapshotAggregator",
    "PublishedLevels",
    # Replay
    "build_aux_view",
    "run_levels_batch",
]
