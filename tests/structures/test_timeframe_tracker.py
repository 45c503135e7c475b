"""
TimeframeTracker tests.

Covers rollover anchoring, value refresh, the insufficient-history no-op
and the current-year (index 0) behavior of the yearly configuration.
"""

import pytest

from keylevels.errors import InvalidConfigurationError
from keylevels.structures.trackers.timeframe import TimeframeTracker
from tests.factories import at


def make_tracker(**params) -> TimeframeTracker:
    params.setdefault("timeframe", "D")
    return TimeframeTracker.validate_and_create("timeframe", "tf", params)


class TestTimeframeRollover:
    """Rollover detection by auxiliary index identity."""

    def test_no_history_is_noop(self):
        tracker = make_tracker()

        rolled = tracker.update_series(0, 100.0, 110.0, 90.0, primary_idx=5)

        assert rolled is False
        assert tracker.get_all_values() == {
            "open": None,
            "prev_high": None,
            "prev_low": None,
            "anchor_idx": None,
            "last_aux_idx": None,
        }

    def test_first_accepted_call_is_rollover(self):
        tracker = make_tracker()

        assert tracker.update_series(1, 100.0, 110.0, 90.0, primary_idx=5) is True
        assert tracker.anchor_idx == 5
        assert tracker.last_aux_idx == 1
        assert tracker.open == 100.0
        assert tracker.prev_high == 110.0
        assert tracker.prev_low == 90.0

    def test_values_refresh_without_moving_anchor(self):
        tracker = make_tracker()
        tracker.update_series(1, 100.0, 110.0, 90.0, primary_idx=5)

        rolled = tracker.update_series(1, 101.0, 111.0, 89.0, primary_idx=6)

        assert rolled is False
        assert tracker.anchor_idx == 5
        assert tracker.open == 101.0
        assert tracker.prev_high == 111.0
        assert tracker.prev_low == 89.0

    def test_new_aux_index_moves_anchor(self):
        tracker = make_tracker()
        tracker.update_series(1, 100.0, 110.0, 90.0, primary_idx=5)

        tracker.update_series(2, 105.0, 112.0, 95.0, primary_idx=9)

        assert tracker.anchor_idx == 9
        assert tracker.last_aux_idx == 2

    def test_anchor_changes_iff_aux_index_changes(self):
        tracker = make_tracker()
        aux_indices = [1, 1, 2, 2, 2, 3, 5, 5, 6]

        previous_aux = None
        previous_anchor = None
        for primary_idx, aux_idx in enumerate(aux_indices, start=10):
            tracker.update_series(aux_idx, 100.0, 110.0, 90.0, primary_idx)
            if aux_idx != previous_aux:
                assert tracker.anchor_idx == primary_idx
            else:
                assert tracker.anchor_idx == previous_anchor
            previous_aux = aux_idx
            previous_anchor = tracker.anchor_idx

    def test_reset(self):
        tracker = make_tracker()
        tracker.update_series(1, 100.0, 110.0, 90.0, primary_idx=5)

        tracker.reset()

        assert tracker.anchor_idx is None
        assert tracker.open is None


class TestTimeframeStepUpdate:
    """update() reading from StepData."""

    def test_reads_previous_extremes(self, bar_factory, aux_factory, step_factory):
        tracker = make_tracker(timeframe="W")
        aux = aux_factory(3, open_=100.0, high=130.0, low=70.0, prev_high=120.0, prev_low=80.0)

        tracker.update(7, step_factory(bar_factory(7, at("10:00")), {"W": aux}))

        assert tracker.prev_high == 120.0
        assert tracker.prev_low == 80.0
        assert tracker.open == 100.0
        assert tracker.anchor_idx == 7

    def test_missing_previous_bar_is_insufficient_history(self, bar_factory, aux_factory, step_factory):
        tracker = make_tracker()
        aux = aux_factory(1, open_=100.0)

        tracker.update(7, step_factory(bar_factory(7, at("10:00")), {"D": aux}))

        assert tracker.anchor_idx is None
        assert tracker.open is None

    def test_missing_series_is_noop(self, bar_factory, step_factory):
        tracker = make_tracker(timeframe="M")

        tracker.update(7, step_factory(bar_factory(7, at("10:00")), {}))

        assert tracker.last_aux_idx is None

    def test_yearly_index_zero_uses_running_extremes(self, bar_factory, aux_factory, step_factory):
        tracker = make_tracker(timeframe="12M", extremes="current", min_history=0)

        aux = aux_factory(0, open_=100.0, high=120.0, low=95.0)
        tracker.update(2, step_factory(bar_factory(2, at("10:00")), {"12M": aux}))

        assert tracker.prev_high == 120.0
        assert tracker.prev_low == 95.0
        assert tracker.open == 100.0
        assert tracker.anchor_idx == 2

        # Running extremes widen within the same year; anchor stays
        aux = aux_factory(0, open_=100.0, high=125.0, low=93.0)
        tracker.update(3, step_factory(bar_factory(3, at("11:00")), {"12M": aux}))

        assert tracker.prev_high == 125.0
        assert tracker.prev_low == 93.0
        assert tracker.anchor_idx == 2

    def test_alias_timeframe_is_canonicalized(self):
        tracker = make_tracker(timeframe="weekly")

        assert tracker.timeframe == "W"


class TestTimeframeValidation:
    """Parameter validation."""

    def test_missing_timeframe(self):
        with pytest.raises(InvalidConfigurationError, match="missing required params"):
            TimeframeTracker.validate_and_create("timeframe", "tf", {})

    def test_unknown_timeframe(self):
        with pytest.raises(InvalidConfigurationError, match="Invalid auxiliary timeframe"):
            make_tracker(timeframe="4h")

    def test_unknown_extremes(self):
        with pytest.raises(InvalidConfigurationError, match="extremes"):
            make_tracker(extremes="both")

    @pytest.mark.parametrize("min_history", [-1, 1.5, True])
    def test_bad_min_history(self, min_history):
        with pytest.raises(InvalidConfigurationError, match="min_history"):
            make_tracker(min_history=min_history)

    def test_unknown_param(self):
        with pytest.raises(InvalidConfigurationError, match="unknown params"):
            make_tracker(period=3)

    def test_bad_output_key(self):
        tracker = make_tracker()

        with pytest.raises(KeyError, match="Available outputs"):
            tracker.get_value_safe("close")
