from datetime import date

import pytest

from tablebook.errors import InvalidFormat
from tablebook.hours import CLOSED_ON_DAY, MISSING_SCHEDULE, OUTSIDE_HOURS, check_hours

from conftest import MONDAY, OPENING_HOURS, SUNDAY


class TestCheckHours:
    def test_closed_on_sunday(self):
        result = check_hours(OPENING_HOURS, SUNDAY, "13:00")
        assert result.is_open is False
        assert result.reason == CLOSED_ON_DAY
        assert result.message == "Restaurant is closed on Sundays"

    def test_open_within_window(self):
        result = check_hours(OPENING_HOURS, MONDAY, "19:00")
        assert result.is_open is True
        assert (result.opening_time, result.closing_time) == ("11:00", "22:00")
        assert result.reason is None

    @pytest.mark.parametrize("time", ["11:00", "22:00"])
    def test_window_bounds_are_inclusive(self, time):
        assert check_hours(OPENING_HOURS, MONDAY, time).is_open is True

    @pytest.mark.parametrize("time", ["10:59", "22:01", "00:00"])
    def test_outside_hours_still_reports_window(self, time):
        result = check_hours(OPENING_HOURS, MONDAY, time)
        assert result.is_open is False
        assert result.reason == OUTSIDE_HOURS
        assert (result.opening_time, result.closing_time) == ("11:00", "22:00")
        assert result.message == "Restaurant is open from 11:00 to 22:00"

    def test_missing_day_counts_as_closed(self):
        result = check_hours({"monday": {"open": "11:00", "close": "22:00"}}, date(2024, 6, 11), "12:00")
        assert result.is_open is False
        assert result.reason == CLOSED_ON_DAY

    @pytest.mark.parametrize("schedule", [None, {}])
    def test_missing_schedule(self, schedule):
        result = check_hours(schedule, MONDAY, "12:00")
        assert result.is_open is False
        assert result.reason == MISSING_SCHEDULE

    @pytest.mark.parametrize(
        "schedule",
        [
            {"monday": "11:00-22:00"},
            {"monday": ["11:00", "22:00"]},
            {"monday": {"open": "11am", "close": "22:00"}},
            {"tuesday": {"open": "11:00", "close": 2200}, "monday": OPENING_HOURS["monday"]},
            ["monday"],
            "always",
        ],
    )
    def test_malformed_schedule_is_closed_not_a_crash(self, schedule):
        result = check_hours(schedule, MONDAY, "12:00")
        assert result.is_open is False
        assert result.reason == MISSING_SCHEDULE
        assert result.message == "Unable to verify restaurant hours"

    def test_closed_flag_ignores_times(self):
        hours = {"monday": {"open": "00:00", "close": "23:59", "closed": True}}
        assert check_hours(hours, MONDAY, "12:00").reason == CLOSED_ON_DAY

    def test_bad_time_is_rejected(self):
        with pytest.raises(InvalidFormat):
            check_hours(OPENING_HOURS, MONDAY, "7pm")


class TestOvernightHours:
    LATE = {
        "friday": {"open": "18:00", "close": "02:00"},
        "saturday": {"open": "18:00", "close": "02:00"},
    }
    FRIDAY = date(2024, 6, 14)
    SATURDAY = date(2024, 6, 15)

    def test_past_midnight_close_is_unsupported_by_default(self):
        assert check_hours(self.LATE, self.FRIDAY, "20:00").is_open is False
        assert check_hours(self.LATE, self.SATURDAY, "01:00").is_open is False

    def test_overnight_window_when_enabled(self):
        assert check_hours(self.LATE, self.FRIDAY, "23:30", allow_overnight=True).is_open is True
        assert check_hours(self.LATE, self.FRIDAY, "17:00", allow_overnight=True).is_open is False

    def test_early_morning_belongs_to_previous_evening(self):
        # Saturday 01:00 is still Friday night's service
        result = check_hours(self.LATE, self.SATURDAY, "01:00", allow_overnight=True)
        assert result.is_open is True
        assert (result.opening_time, result.closing_time) == ("18:00", "02:00")

        # Friday 01:00 would belong to Thursday, which has no schedule
        assert check_hours(self.LATE, self.FRIDAY, "01:00", allow_overnight=True).is_open is False
