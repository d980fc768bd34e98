"""Slot search: validity, exact-request checks and the range search over staff."""

from datetime import datetime, time

import pytest

from booking_app.core.errors import ErrorKind
from booking_app.models import BookingStatus
from booking_app.services.availability.alternative_suggester import suggest_alternatives
from booking_app.services.availability.availability_service import (
    AvailabilityService,
    explain_unavailable,
    find_slots,
)
from tests.conftest import (
    FACILITY_HOURS,
    NOW,
    SATURDAY,
    STAFF_WEEKDAY_HOURS,
    WEDNESDAY,
    make_booking,
    make_service,
    make_staff,
)


def _slots(existing=(), duration=60, **kwargs):
    return find_slots(
        FACILITY_HOURS,
        STAFF_WEEKDAY_HOURS,
        existing,
        WEDNESDAY,
        duration,
        staff_id="staff-1",
        service_id="svc-1",
        **kwargs,
    )


class TestFindSlots:
    def test_slots_fit_inside_staff_window(self):
        slots = _slots()
        assert slots[0].start_time == time(9, 0)
        assert slots[-1].start_time == time(17, 0)
        assert all(s.end_time <= time(18, 0) for s in slots)

    def test_granularity_steps(self):
        starts = [s.start_time for s in _slots()[:3]]
        assert starts == [time(9, 0), time(9, 15), time(9, 30)]

    def test_existing_booking_blocks_overlapping_starts(self):
        busy = [(datetime(2024, 11, 6, 12, 0), datetime(2024, 11, 6, 13, 0))]
        starts = {s.start_time for s in _slots(busy)}
        assert time(11, 0) in starts
        assert time(11, 15) not in starts
        assert time(12, 45) not in starts
        assert time(13, 0) in starts

    def test_inactive_booking_does_not_block(self, db, salon):
        _, staff, service = salon
        make_booking(db, staff, service, datetime(2024, 11, 6, 12, 0), status=BookingStatus.CANCELLED.value)
        slots = AvailabilityService.find_slots_for_staff(db, salon[0], staff, service, WEDNESDAY)
        assert time(12, 0) in {s.start_time for s in slots}

    def test_service_longer_than_every_window(self):
        assert _slots(duration=10 * 60) == []

    def test_not_before_drops_past_starts(self):
        slots = _slots(not_before=datetime(2024, 11, 6, 15, 5))
        assert slots[0].start_time == time(15, 15)

    def test_past_day_has_no_slots(self):
        assert _slots(not_before=datetime(2024, 11, 7, 8, 0)) == []

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValueError):
            _slots(duration=0)

    def test_staff_day_off(self):
        slots = find_slots(
            FACILITY_HOURS, STAFF_WEEKDAY_HOURS, [], SATURDAY, 60, staff_id="staff-1", service_id="svc-1"
        )
        assert slots == []


class TestExplainUnavailable:
    def _explain(self, start, existing=(), duration=60, day=WEDNESDAY):
        return explain_unavailable(FACILITY_HOURS, STAFF_WEEKDAY_HOURS, existing, day, start, duration)

    def test_bookable(self):
        assert self._explain(time(10, 0)) is None

    def test_after_staff_hours(self):
        assert self._explain(time(19, 30)) == ErrorKind.OUT_OF_HOURS

    def test_runs_past_closing(self):
        assert self._explain(time(17, 30)) == ErrorKind.DURATION_EXCEEDS_WINDOW

    def test_staff_off(self):
        assert self._explain(time(10, 0), day=SATURDAY) == ErrorKind.STAFF_UNAVAILABLE

    def test_conflict(self):
        busy = [(datetime(2024, 11, 6, 10, 30), datetime(2024, 11, 6, 11, 0))]
        assert self._explain(time(10, 0), busy) == ErrorKind.AVAILABILITY_CONFLICT

    def test_back_to_back_is_allowed(self):
        busy = [(datetime(2024, 11, 6, 9, 0), datetime(2024, 11, 6, 10, 0))]
        assert self._explain(time(10, 0), busy) is None


class TestRequestedSlotScenario:
    def test_evening_request_offers_same_day_afternoon(self, db, salon):
        facility, staff, service = salon

        reason, slot = AvailabilityService.check_requested_slot(
            db, facility, staff, service, WEDNESDAY, time(19, 30), not_before=NOW
        )
        assert slot is None
        assert reason == ErrorKind.OUT_OF_HOURS

        slots = AvailabilityService.find_slots_for_range(db, facility, service, WEDNESDAY, 7, not_before=NOW)
        assert time(19, 30) not in {s.start_time for s in slots if s.date == WEDNESDAY}

        ranked = suggest_alternatives(slots, WEDNESDAY, time(19, 30))
        assert ranked
        assert all(r.slot.date == WEDNESDAY for r in ranked)
        assert all(r.slot.start_time <= time(17, 0) for r in ranked)
        assert ranked[0].slot.start_time == time(17, 0)

    def test_available_request_returns_slot(self, db, salon):
        facility, staff, service = salon
        reason, slot = AvailabilityService.check_requested_slot(
            db, facility, staff, service, WEDNESDAY, time(14, 0), not_before=NOW
        )
        assert reason is None
        assert slot.end_time == time(15, 0)
        assert slot.staff_name == staff.name


class TestRangeSearch:
    def test_only_qualified_staff(self, db, salon):
        facility, staff, service = salon
        make_staff(db, facility, name="Boris Nails", specializations=["nails"])

        slots = AvailabilityService.find_slots_for_range(db, facility, service, WEDNESDAY, 1, not_before=NOW)
        assert {s.staff_id for s in slots} == {staff.id}

    def test_inactive_staff_excluded(self, db, salon):
        facility, staff, service = salon
        other = make_staff(db, facility, name="Carla Off", is_active=False)

        slots = AvailabilityService.find_slots_for_range(db, facility, service, WEDNESDAY, 1, not_before=NOW)
        assert other.id not in {s.staff_id for s in slots}

    def test_chronological_order(self, db, salon):
        facility, _, service = salon
        make_staff(db, facility, name="Boris Hair", specializations=["hair"])

        slots = AvailabilityService.find_slots_for_range(db, facility, service, WEDNESDAY, 2, not_before=NOW)
        keys = [(s.start_dt, s.staff_name) for s in slots]
        assert keys == sorted(keys)

    def test_booked_interval_excluded(self, db, salon):
        facility, staff, service = salon
        make_booking(db, staff, service, datetime(2024, 11, 6, 14, 0))

        slots = AvailabilityService.find_slots_for_range(db, facility, service, WEDNESDAY, 1, not_before=NOW)
        starts = {s.start_time for s in slots}
        assert time(14, 0) not in starts
        assert time(13, 0) in starts
        assert time(15, 0) in starts

    def test_no_staff_for_service(self, db, salon):
        facility, _, _ = salon
        massage = make_service(db, facility, name="Massage", category="spa")
        for member in facility.staff:
            member.specializations = ["hair"]
        db.commit()

        assert AvailabilityService.find_slots_for_range(db, facility, massage, WEDNESDAY, 3) == []
