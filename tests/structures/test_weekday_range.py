"""
WeekdayRangeTracker tests.
"""

from datetime import date

import pytest

from keylevels.errors import InvalidConfigurationError
from keylevels.structures.trackers.weekday_range import WeekdayRangeTracker
from tests.factories import at, make_bar, make_step

MONDAY = date(2024, 3, 4)
NEXT_MONDAY = date(2024, 3, 11)


def make_tracker(weekday: int = 0) -> WeekdayRangeTracker:
    return WeekdayRangeTracker.validate_and_create("weekday_range", "wr", {"weekday": weekday})


class TestWeekdayRange:
    """Range accumulation on the target weekday."""

    def test_other_weekday_is_noop(self):
        tracker = make_tracker()

        tracker.update_bar(date(2024, 3, 5), 1, 110.0, 90.0, primary_idx=3)

        assert tracker.high is None
        assert tracker.anchor_date is None

    def test_first_bar_starts_range(self):
        tracker = make_tracker()

        tracker.update_bar(MONDAY, 0, 105.0, 95.0, primary_idx=3)

        assert tracker.high == 105.0
        assert tracker.low == 95.0
        assert tracker.anchor_idx == 3
        assert tracker.anchor_date == MONDAY

    def test_extends_on_same_date(self):
        tracker = make_tracker()
        highs = [105.0, 108.0, 103.0]
        lows = [95.0, 97.0, 92.0]

        for i, (h, l) in enumerate(zip(highs, lows)):
            tracker.update_bar(MONDAY, 0, h, l, primary_idx=10 + i)
            assert tracker.high == max(highs[: i + 1])
            assert tracker.low == min(lows[: i + 1])
            assert tracker.anchor_idx == 10

    def test_new_date_resets(self):
        tracker = make_tracker()
        tracker.update_bar(MONDAY, 0, 150.0, 50.0, primary_idx=1)

        tracker.update_bar(NEXT_MONDAY, 0, 105.0, 95.0, primary_idx=40)

        assert tracker.high == 105.0
        assert tracker.low == 95.0
        assert tracker.anchor_idx == 40
        assert tracker.anchor_date == NEXT_MONDAY

    def test_range_survives_rest_of_week(self):
        tracker = make_tracker()
        tracker.update(0, make_step(make_bar(0, at("09:00"), high=105.0, low=95.0)))

        # Tuesday .. Friday
        for day in range(1, 5):
            tracker.update(day, make_step(make_bar(day, at("09:00", day=day), high=500.0, low=1.0)))

        assert tracker.high == 105.0
        assert tracker.low == 95.0
        assert tracker.anchor_idx == 0

    def test_other_target_weekday(self):
        tracker = make_tracker(weekday=2)

        tracker.update(0, make_step(make_bar(0, at("09:00"), high=105.0, low=95.0)))
        tracker.update(1, make_step(make_bar(1, at("09:00", day=2), high=120.0, low=110.0)))

        assert tracker.high == 120.0
        assert tracker.anchor_date == date(2024, 3, 6)

    def test_reset(self):
        tracker = make_tracker()
        tracker.update_bar(MONDAY, 0, 105.0, 95.0, primary_idx=3)

        tracker.reset()

        assert tracker.get_value("high") is None
        assert tracker.get_value("anchor_date") is None


class TestWeekdayValidation:
    """Parameter validation."""

    @pytest.mark.parametrize("weekday", [-1, 7, True, "monday"])
    def test_invalid_weekday(self, weekday):
        with pytest.raises(InvalidConfigurationError, match="weekday"):
            make_tracker(weekday=weekday)

    def test_default_is_monday(self):
        tracker = WeekdayRangeTracker.validate_and_create("weekday_range", "wr", {})

        assert tracker.weekday == 0
