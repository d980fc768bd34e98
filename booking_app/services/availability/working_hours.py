# ===== booking_app/services/availability/working_hours.py =====
"""
Working-hours resolution.

Turns a per-weekday schedule into the open windows of one calendar date,
expressed as minutes since midnight. Facility hours are authoritative: a
malformed or missing facility schedule means closed. Staff hours are
optional: a missing or malformed staff schedule imposes no constraint.
"""
from datetime import date
from typing import List, NamedTuple, Optional
import logging

from pydantic import ValidationError as SchemaValidationError

from booking_app.schemas.working_hours import WorkingHoursSpec

logger = logging.getLogger(__name__)


class TimeWindow(NamedTuple):
    """Half-open [start, end) in minutes since midnight"""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


def parse_hhmm(value: str) -> int:
    hours, minutes = value.strip().split(":")
    return int(hours) * 60 + int(minutes)


def merge_windows(windows: List[TimeWindow]) -> List[TimeWindow]:
    """Sort and merge overlapping or touching windows"""
    merged: List[TimeWindow] = []
    for window in sorted(w for w in windows if w.end > w.start):
        if merged and window.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeWindow(last.start, max(last.end, window.end))
        else:
            merged.append(window)
    return merged


def subtract_windows(base: TimeWindow, cuts: List[TimeWindow]) -> List[TimeWindow]:
    """Remove every cut from the base window; cuts outside the base are ignored"""
    result = []
    cursor = base.start
    for cut in merge_windows(cuts):
        if cut.end <= base.start or cut.start >= base.end:
            continue
        if cut.start > cursor:
            result.append(TimeWindow(cursor, cut.start))
        cursor = max(cursor, cut.end)
    if cursor < base.end:
        result.append(TimeWindow(cursor, base.end))
    return result


def intersect_windows(a: List[TimeWindow], b: List[TimeWindow]) -> List[TimeWindow]:
    """Pairwise intersection of two window lists"""
    result = []
    for left in a:
        for right in b:
            start = max(left.start, right.start)
            end = min(left.end, right.end)
            if start < end:
                result.append(TimeWindow(start, end))
    return merge_windows(result)


def resolve_open_windows(spec: WorkingHoursSpec, day: date) -> List[TimeWindow]:
    """Open windows of `spec` on `day` with breaks subtracted; [] when closed"""
    schedule = spec.for_weekday(day.weekday())
    if schedule is None:
        return []

    base = TimeWindow(parse_hhmm(schedule.start), parse_hhmm(schedule.end))
    if base.end <= base.start:
        logger.warning(f"Ignoring inverted schedule {schedule.start}-{schedule.end} on {day}")
        return []

    breaks = [
        TimeWindow(parse_hhmm(b.start), parse_hhmm(b.end))
        for b in schedule.breaks
    ]
    return subtract_windows(base, breaks)


def resolve_facility_windows(raw: Optional[dict], day: date) -> List[TimeWindow]:
    """Facility hours; malformed input is treated as closed, never bypassed"""
    if not raw:
        return []
    try:
        spec = WorkingHoursSpec.from_raw(raw)
    except (SchemaValidationError, ValueError) as e:
        logger.error(f"Malformed facility working hours, treating {day} as closed: {e}")
        return []
    return resolve_open_windows(spec, day)


def resolve_staff_windows(raw: Optional[dict], day: date) -> Optional[List[TimeWindow]]:
    """
    Staff hours for `day`.

    Returns None when the staff member has no usable schedule (no constraint
    from this source), or a list of windows, empty when they are off that day.
    """
    if raw is None:
        return None
    try:
        spec = WorkingHoursSpec.from_raw(raw)
    except (SchemaValidationError, ValueError) as e:
        logger.warning(f"Malformed staff working hours ignored for {day}: {e}")
        return None
    if not spec.days:
        return None
    return resolve_open_windows(spec, day)


def resolve_day_windows(
        facility_hours: Optional[dict],
        staff_hours: Optional[dict],
        day: date,
) -> List[TimeWindow]:
    """Windows in which both the facility is open and the staff member works"""
    facility_windows = resolve_facility_windows(facility_hours, day)
    if not facility_windows:
        return []

    staff_windows = resolve_staff_windows(staff_hours, day)
    if staff_windows is None:
        return facility_windows
    return intersect_windows(facility_windows, staff_windows)
