# ===== booking_app/services/availability/availability_service.py =====
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import date, datetime, time, timedelta
from sqlalchemy.orm import Session
import logging

from booking_app.config.settings import get_settings
from booking_app.core.errors import ErrorKind
from booking_app.models.booking import ACTIVE_BOOKING_STATUSES
from booking_app.models.facility import Facility, Staff
from booking_app.models.service import Service
from booking_app.schemas.slots import SlotCandidate
from booking_app.services.availability.working_hours import (
    TimeWindow,
    resolve_day_windows,
    resolve_facility_windows,
    resolve_staff_windows,
)
from booking_app.services.booking.booking_query_service import BookingQueryService
from booking_app.services.facility.facility_service import FacilityService

logger = logging.getLogger(__name__)
settings = get_settings()

MINUTES_PER_DAY = 24 * 60


def _interval_of(booking) -> Optional[Tuple[datetime, datetime]]:
    """Accepts Booking rows (active ones only) or plain (start, end) pairs"""
    if isinstance(booking, tuple):
        return booking
    status = getattr(booking, "status", None)
    if status is not None and status not in ACTIVE_BOOKING_STATUSES:
        return None
    return booking.start_ts, booking.end_ts


def busy_minutes(existing_bookings: Iterable, day: date) -> List[TimeWindow]:
    """Project bookings onto `day` as minute intervals, clipped to the day"""
    day_start = datetime.combine(day, time.min)
    day_end = day_start + timedelta(days=1)
    busy = []
    for booking in existing_bookings:
        interval = _interval_of(booking)
        if interval is None:
            continue
        start, end = max(interval[0], day_start), min(interval[1], day_end)
        if start < end:
            busy.append(TimeWindow(
                int((start - day_start).total_seconds() // 60),
                int(-(-(end - day_start).total_seconds() // 60)),
            ))
    return busy


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval intersection"""
    return a_start < b_end and b_start < a_end


def _minute_floor(day: date, not_before: Optional[datetime]) -> Optional[int]:
    """First bookable minute of `day`, or None when the whole day is in the past"""
    if not_before is None or not_before.date() < day:
        return 0
    if not_before.date() > day:
        return None
    return not_before.hour * 60 + not_before.minute + (1 if not_before.second or not_before.microsecond else 0)


def _to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def find_slots(
        facility_hours: Optional[dict],
        staff_hours: Optional[dict],
        existing_bookings: Iterable,
        day: date,
        service_duration_minutes: int,
        *,
        staff_id: str,
        service_id: str,
        granularity_minutes: Optional[int] = None,
        not_before: Optional[datetime] = None,
        staff_name: Optional[str] = None,
) -> List[SlotCandidate]:
    """
    Bookable slots for one staff member on one day, in chronological order.

    Walks every open window (facility ∩ staff, minus breaks) in
    granularity-sized steps and keeps each step whose
    [step, step + duration) fits the window and misses every active booking.
    """
    if service_duration_minutes <= 0:
        raise ValueError("Service duration must be positive")
    granularity = granularity_minutes or settings.SLOT_GRANULARITY_MINUTES

    floor = _minute_floor(day, not_before)
    if floor is None:
        return []

    windows = resolve_day_windows(facility_hours, staff_hours, day)
    busy = busy_minutes(existing_bookings, day)

    slots = []
    for window in windows:
        step = window.start
        while step + service_duration_minutes <= window.end:
            end = step + service_duration_minutes
            if step >= floor and not any(overlaps(step, end, b.start, b.end) for b in busy):
                slots.append(SlotCandidate(
                    staff_id=staff_id,
                    service_id=service_id,
                    date=day,
                    start_time=_to_time(step),
                    end_time=_to_time(end),
                    staff_name=staff_name,
                ))
            step += granularity

    return slots


def explain_unavailable(
        facility_hours: Optional[dict],
        staff_hours: Optional[dict],
        existing_bookings: Iterable,
        day: date,
        start: time,
        service_duration_minutes: int,
        not_before: Optional[datetime] = None,
) -> Optional[ErrorKind]:
    """
    Why an exact requested start cannot be booked, or None when it can.
    """
    start_minute = start.hour * 60 + start.minute
    end_minute = start_minute + service_duration_minutes

    floor = _minute_floor(day, not_before)
    if floor is None or start_minute < floor:
        return ErrorKind.OUT_OF_HOURS

    facility_windows = resolve_facility_windows(facility_hours, day)
    if not facility_windows:
        return ErrorKind.OUT_OF_HOURS

    staff_windows = resolve_staff_windows(staff_hours, day)
    if staff_windows == []:
        return ErrorKind.STAFF_UNAVAILABLE

    windows = resolve_day_windows(facility_hours, staff_hours, day)
    window = next((w for w in windows if w.start <= start_minute < w.end), None)
    if window is None:
        return ErrorKind.OUT_OF_HOURS
    if end_minute > window.end:
        return ErrorKind.DURATION_EXCEEDS_WINDOW

    for b in busy_minutes(existing_bookings, day):
        if overlaps(start_minute, end_minute, b.start, b.end):
            return ErrorKind.AVAILABILITY_CONFLICT

    return None


class AvailabilityService:
    """DB-backed slot search for staff members of a facility"""

    @staticmethod
    def find_slots_for_staff(
            db: Session,
            facility: Facility,
            staff: Staff,
            service: Service,
            day: date,
            not_before: Optional[datetime] = None,
    ) -> List[SlotCandidate]:
        """Slots of one staff member on one day"""
        if not staff.is_active:
            logger.info(f"Staff {staff.id} is inactive, no slots")
            return []

        day_start = datetime.combine(day, time.min)
        bookings = BookingQueryService.get_active_bookings(
            db, [staff.id], day_start, day_start + timedelta(days=1)
        )
        return find_slots(
            facility.working_hours,
            staff.working_hours,
            bookings,
            day,
            service.duration_minutes,
            staff_id=staff.id,
            service_id=service.id,
            not_before=not_before,
            staff_name=staff.name,
        )

    @staticmethod
    def find_slots_for_range(
            db: Session,
            facility: Facility,
            service: Service,
            start_day: date,
            days: int,
            staff: Optional[Staff] = None,
            not_before: Optional[datetime] = None,
    ) -> List[SlotCandidate]:
        """
        Slots over [start_day, start_day + days) for one staff member, or for
        every active staff member qualified for the service.
        Ordered chronologically, then by staff name.
        """
        if staff is not None:
            members = [staff] if staff.is_active else []
        else:
            members = FacilityService.list_staff_for_service(db, service)

        if not members:
            logger.warning(f"No active staff for service {service.id} in facility {facility.id}")
            return []

        range_start = datetime.combine(start_day, time.min)
        range_end = range_start + timedelta(days=days)
        bookings = BookingQueryService.get_active_bookings(
            db, [m.id for m in members], range_start, range_end
        )
        by_staff: Dict[str, list] = {}
        for booking in bookings:
            by_staff.setdefault(booking.staff_id, []).append(booking)

        slots: List[SlotCandidate] = []
        for offset in range(days):
            day = start_day + timedelta(days=offset)
            for member in members:
                slots.extend(find_slots(
                    facility.working_hours,
                    member.working_hours,
                    by_staff.get(member.id, []),
                    day,
                    service.duration_minutes,
                    staff_id=member.id,
                    service_id=service.id,
                    not_before=not_before,
                    staff_name=member.name,
                ))

        slots.sort(key=lambda s: (s.start_dt, s.staff_name or "", s.staff_id))
        logger.info(f"Found {len(slots)} slots over {days} day(s) for service {service.id}")
        return slots

    @staticmethod
    def check_requested_slot(
            db: Session,
            facility: Facility,
            staff: Staff,
            service: Service,
            day: date,
            start: time,
            not_before: Optional[datetime] = None,
    ) -> Tuple[Optional[ErrorKind], Optional[SlotCandidate]]:
        """
        Validate an exact (staff, day, start) request.
        Returns (None, slot) when bookable, else (reason, None).
        """
        if not staff.is_active:
            return ErrorKind.STAFF_UNAVAILABLE, None

        day_start = datetime.combine(day, time.min)
        bookings = BookingQueryService.get_active_bookings(
            db, [staff.id], day_start, day_start + timedelta(days=1)
        )
        reason = explain_unavailable(
            facility.working_hours,
            staff.working_hours,
            bookings,
            day,
            start,
            service.duration_minutes,
            not_before=not_before,
        )
        if reason is not None:
            return reason, None

        end_minute = start.hour * 60 + start.minute + service.duration_minutes
        return None, SlotCandidate(
            staff_id=staff.id,
            service_id=service.id,
            date=day,
            start_time=start,
            end_time=_to_time(end_minute),
            staff_name=staff.name,
        )
