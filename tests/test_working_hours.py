"""Working-hours resolution: weekday schedules, breaks and staff constraints."""

from datetime import date

from booking_app.services.availability.working_hours import (
    TimeWindow,
    intersect_windows,
    merge_windows,
    resolve_day_windows,
    resolve_facility_windows,
    resolve_staff_windows,
    subtract_windows,
)
from tests.conftest import FACILITY_HOURS, STAFF_WEEKDAY_HOURS, SATURDAY, WEDNESDAY


class TestWindowArithmetic:
    def test_merge_touching_windows(self):
        merged = merge_windows([TimeWindow(600, 660), TimeWindow(540, 600), TimeWindow(700, 720)])
        assert merged == [TimeWindow(540, 660), TimeWindow(700, 720)]

    def test_merge_drops_empty_windows(self):
        assert merge_windows([TimeWindow(600, 600), TimeWindow(620, 610)]) == []

    def test_subtract_break(self):
        result = subtract_windows(TimeWindow(540, 1080), [TimeWindow(780, 840)])
        assert result == [TimeWindow(540, 780), TimeWindow(840, 1080)]

    def test_subtract_ignores_cuts_outside(self):
        result = subtract_windows(TimeWindow(540, 600), [TimeWindow(0, 60), TimeWindow(1200, 1300)])
        assert result == [TimeWindow(540, 600)]

    def test_intersect(self):
        result = intersect_windows([TimeWindow(540, 1200)], [TimeWindow(600, 780), TimeWindow(840, 1260)])
        assert result == [TimeWindow(600, 780), TimeWindow(840, 1200)]


class TestFacilityHours:
    def test_open_day(self):
        assert resolve_facility_windows(FACILITY_HOURS, WEDNESDAY) == [TimeWindow(540, 1200)]

    def test_missing_weekday_is_closed(self):
        hours = {"monday": {"start": "09:00", "end": "18:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == []

    def test_keys_are_case_insensitive(self):
        hours = {"Wednesday": {"start": "10:00", "end": "12:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == [TimeWindow(600, 720)]

    def test_unknown_weekday_key_is_ignored(self):
        hours = {"funday": {"start": "10:00", "end": "12:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == []

    def test_malformed_time_means_closed(self):
        hours = {"wednesday": {"start": "9am", "end": "18:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == []

    def test_end_of_day_is_not_accepted(self):
        hours = {"wednesday": {"start": "09:00", "end": "24:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == []

    def test_inverted_schedule_means_closed(self):
        hours = {"wednesday": {"start": "18:00", "end": "09:00"}}
        assert resolve_facility_windows(hours, WEDNESDAY) == []

    def test_none_means_closed(self):
        assert resolve_facility_windows(None, WEDNESDAY) == []

    def test_breaks_are_subtracted(self):
        hours = {"wednesday": {"start": "09:00", "end": "18:00", "breaks": [{"start": "13:00", "end": "14:00"}]}}
        assert resolve_facility_windows(hours, WEDNESDAY) == [TimeWindow(540, 780), TimeWindow(840, 1080)]


class TestStaffHours:
    def test_no_schedule_is_no_constraint(self):
        assert resolve_staff_windows(None, WEDNESDAY) is None

    def test_malformed_schedule_is_no_constraint(self):
        assert resolve_staff_windows(["monday"], WEDNESDAY) is None

    def test_day_off(self):
        assert resolve_staff_windows(STAFF_WEEKDAY_HOURS, SATURDAY) == []

    def test_staff_narrows_facility(self):
        assert resolve_day_windows(FACILITY_HOURS, STAFF_WEEKDAY_HOURS, WEDNESDAY) == [TimeWindow(540, 1080)]

    def test_facility_closed_overrides_staff(self):
        facility = {"monday": {"start": "09:00", "end": "20:00"}}
        assert resolve_day_windows(facility, STAFF_WEEKDAY_HOURS, WEDNESDAY) == []

    def test_staff_without_schedule_follows_facility(self):
        assert resolve_day_windows(FACILITY_HOURS, None, date(2024, 11, 10)) == [TimeWindow(540, 1200)]
