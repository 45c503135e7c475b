"""
LevelTrackerState tests: construction, ordering guard and path access.
"""

import pytest

from keylevels.errors import InvalidConfigurationError, OutOfOrderBarError
from keylevels.structures import LevelTrackerState
from tests.factories import at, make_aux, make_bar, make_step

SPECS = [
    {"type": "timeframe", "key": "daily", "params": {"timeframe": "D"}},
    {"type": "weekday_range", "key": "weekday_range", "params": {"weekday": 0}},
    {"type": "session_window", "key": "london",
     "params": {"name": "London", "start": "08:00", "end": "16:00"}},
]


def daily_aux(idx: int = 1):
    return {"D": make_aux(idx, open_=100.0, prev_high=110.0, prev_low=90.0)}


class TestStateConstruction:
    """Spec validation."""

    def test_update_order(self):
        state = LevelTrackerState(SPECS)

        assert state.list_trackers() == ["daily", "weekday_range", "london"]

    @pytest.mark.parametrize(
        "spec,match",
        [
            ({"key": "x"}, "missing 'type'"),
            ({"type": "timeframe", "params": {"timeframe": "D"}}, "missing 'key'"),
            ({"type": "vwap", "key": "x"}, "unknown tracker type"),
        ],
    )
    def test_bad_spec(self, spec, match):
        with pytest.raises(InvalidConfigurationError, match=match):
            LevelTrackerState([spec])

    def test_duplicate_key(self):
        with pytest.raises(InvalidConfigurationError, match="duplicate tracker key"):
            LevelTrackerState([SPECS[0], SPECS[0]])

    def test_invalid_session_refused_before_any_bar(self):
        spec = {"type": "session_window", "key": "bad", "params": {"start": 60000, "end": 10000}}

        with pytest.raises(InvalidConfigurationError):
            LevelTrackerState([spec])


class TestStateOrdering:
    """Out-of-order bars never reach a tracker."""

    def test_repeated_index_rejected_and_state_unchanged(self):
        state = LevelTrackerState(SPECS)
        state.update(make_step(make_bar(5, at("09:00"), high=105.0, low=95.0), daily_aux()))
        before = state.to_json()

        repeat = make_step(make_bar(5, at("09:00"), high=500.0, low=1.0), daily_aux(2))
        with pytest.raises(OutOfOrderBarError) as exc_info:
            state.update(repeat)

        assert exc_info.value.bar_idx == 5
        assert exc_info.value.last_idx == 5
        assert state.to_json() == before

    def test_lower_index_rejected(self):
        state = LevelTrackerState(SPECS)
        state.update(make_step(make_bar(5, at("09:00"))))

        with pytest.raises(OutOfOrderBarError):
            state.update(make_step(make_bar(4, at("10:00"))))

        assert state.last_bar_idx == 5

    def test_advance_moves_guard_only(self):
        state = LevelTrackerState(SPECS)

        state.advance(0)

        assert state.last_bar_idx == 0
        assert state.get_value("london.active") is False
        with pytest.raises(OutOfOrderBarError):
            state.advance(0)

    def test_reset_allows_replay(self):
        state = LevelTrackerState(SPECS)
        state.update(make_step(make_bar(0, at("09:00")), daily_aux()))

        state.reset()

        assert state.last_bar_idx == -1
        assert state.get_value("daily.open") is None
        state.update(make_step(make_bar(0, at("09:00")), daily_aux()))


class TestStateAccess:
    """Path-based access and serialization."""

    def test_get_value_paths(self):
        state = LevelTrackerState(SPECS)
        state.update(make_step(make_bar(0, at("09:00"), high=105.0, low=95.0), daily_aux()))

        assert state.get_value("daily.prev_high") == 110.0
        assert state.get_value("weekday_range.high") == 105.0
        assert state.get_value("london.active") is True

    @pytest.mark.parametrize("path", ["daily", "daily.open.extra", ".open", "daily."])
    def test_bad_path_format(self, path):
        state = LevelTrackerState(SPECS)

        with pytest.raises(ValueError, match="Invalid path format"):
            state.get_value(path)

    def test_unknown_tracker_or_output(self):
        state = LevelTrackerState(SPECS)

        with pytest.raises(KeyError, match="not defined"):
            state.get_value("weekly.open")
        with pytest.raises(KeyError, match="has no output"):
            state.get_value("daily.close")

    def test_list_paths(self):
        state = LevelTrackerState(SPECS)

        paths = state.list_all_paths()

        assert paths[0] == "daily.open"
        assert "london.snapshot_anchor_idx" in paths
        assert state.list_outputs("weekday_range") == ["high", "low", "anchor_idx", "anchor_date"]

    def test_to_json_serializes_dates(self):
        state = LevelTrackerState(SPECS)
        state.update(make_step(make_bar(0, at("09:00"))))

        data = state.to_json()

        assert data["last_bar_idx"] == 0
        assert data["trackers"]["weekday_range"]["type"] == "weekday_range"
        assert data["trackers"]["weekday_range"]["values"]["anchor_date"] == "2024-03-04"

