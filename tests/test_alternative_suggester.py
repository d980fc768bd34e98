"""Ranking of alternative slots around a requested date and time."""

from datetime import date, time, timedelta

from booking_app.schemas.language import Language
from booking_app.schemas.slots import SlotCandidate
from booking_app.services.availability.alternative_suggester import (
    rank_by_date_proximity,
    rank_by_time_proximity,
    suggest_alternatives,
)
from tests.conftest import THURSDAY, WEDNESDAY


def slot(day, hour, minute=0, staff_id="staff-a", staff_name=None):
    start = time(hour, minute)
    end = time(hour + 1, minute)
    return SlotCandidate(
        staff_id=staff_id, service_id="svc", date=day, start_time=start, end_time=end, staff_name=staff_name
    )


def full_day(day, staff_id="staff-a"):
    return [slot(day, h, m, staff_id) for h in range(9, 18) for m in (0, 15, 30, 45)]


class TestTimeProximity:
    def test_closest_first(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 9), slot(WEDNESDAY, 13), slot(WEDNESDAY, 16)], time(14, 0))
        assert [r.slot.start_time for r in ranked] == [time(13), time(16), time(9)]
        assert [r.rank for r in ranked] == [1, 2, 3]

    def test_equal_distance_prefers_earlier(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 15), slot(WEDNESDAY, 13)], time(14, 0))
        assert [r.slot.start_time for r in ranked] == [time(13), time(15)]

    def test_same_instant_breaks_tie_by_staff_id(self):
        ranked = rank_by_time_proximity(
            [slot(WEDNESDAY, 13, staff_id="staff-b"), slot(WEDNESDAY, 13, staff_id="staff-a")], time(13, 0)
        )
        assert [r.slot.staff_id for r in ranked] == ["staff-a", "staff-b"]

    def test_order_independent_of_input_order(self):
        slots = full_day(WEDNESDAY) + full_day(WEDNESDAY, "staff-b")
        first = rank_by_time_proximity(slots, time(12, 10))
        second = rank_by_time_proximity(list(reversed(slots)), time(12, 10))
        assert [r.slot.identity for r in first] == [r.slot.identity for r in second]

    def test_capped_after_sorting(self):
        slots = full_day(WEDNESDAY)
        ranked = rank_by_time_proximity(slots, time(17, 0))
        assert len(ranked) == 10
        assert ranked[0].slot.start_time == time(17, 0)
        assert all(r.slot.start_time >= time(14, 45) for r in ranked)

    def test_explicit_limit(self):
        assert len(rank_by_time_proximity(full_day(WEDNESDAY), time(12, 0), limit=3)) == 3

    def test_duplicates_removed(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 10), slot(WEDNESDAY, 10)], time(10, 0))
        assert len(ranked) == 1

    def test_stars_only_for_nearby_leaders(self):
        ranked = rank_by_time_proximity(full_day(WEDNESDAY), time(12, 0))
        assert [r.starred for r in ranked[:4]] == [True, True, True, False]

    def test_far_slots_not_starred(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 9)], time(17, 0))
        assert ranked[0].starred is False
        assert ranked[0].proximity_label is None

    def test_labels(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 12), slot(WEDNESDAY, 12, 30)], time(12, 0))
        assert ranked[0].proximity_label == "requested time"
        assert "30" in ranked[1].proximity_label

    def test_labels_localized(self):
        ranked = rank_by_time_proximity([slot(WEDNESDAY, 12, 30)], time(12, 0), Language.RU)
        assert "30" in ranked[0].proximity_label
        assert "later" not in ranked[0].proximity_label


class TestDateProximity:
    def test_nearest_day_first(self):
        slots = [slot(WEDNESDAY + timedelta(days=3), 10), slot(WEDNESDAY + timedelta(days=1), 16)]
        ranked = rank_by_date_proximity(slots, WEDNESDAY)
        assert [r.slot.date for r in ranked] == [WEDNESDAY + timedelta(days=1), WEDNESDAY + timedelta(days=3)]

    def test_without_time_earliest_slot_of_day_wins(self):
        ranked = rank_by_date_proximity([slot(THURSDAY, 15), slot(THURSDAY, 9)], WEDNESDAY)
        assert ranked[0].slot.start_time == time(9)

    def test_with_time_same_time_of_day_wins(self):
        ranked = rank_by_date_proximity([slot(THURSDAY, 9), slot(THURSDAY, 15)], WEDNESDAY, target_time=time(15))
        assert ranked[0].slot.start_time == time(15)

    def test_days_label(self):
        ranked = rank_by_date_proximity([slot(THURSDAY, 9)], WEDNESDAY)
        assert "1" in ranked[0].proximity_label


class TestSuggestAlternatives:
    def test_same_day_preferred(self):
        slots = [slot(WEDNESDAY, 9), slot(THURSDAY, 10)]
        ranked = suggest_alternatives(slots, WEDNESDAY, time(18, 0))
        assert [r.slot.date for r in ranked] == [WEDNESDAY]

    def test_other_days_when_day_full(self):
        ranked = suggest_alternatives(full_day(THURSDAY), WEDNESDAY, time(14, 0))
        assert ranked[0].slot.date == THURSDAY
        assert ranked[0].slot.start_time == time(14, 0)

    def test_nothing_available(self):
        assert suggest_alternatives([], WEDNESDAY, time(14, 0)) == []

    def test_deterministic(self):
        slots = full_day(WEDNESDAY) + full_day(THURSDAY, "staff-b")
        runs = {tuple(r.slot.identity for r in suggest_alternatives(slots, date(2024, 11, 6), None)) for _ in range(5)}
        assert len(runs) == 1
