# ============================================================================
# booking_app/services/booking/booking_query_service.py
# ============================================================================
"""Queries over existing bookings"""
from datetime import datetime
from typing import Iterable, List

from sqlalchemy.orm import Session

from booking_app.models.booking import Booking, ACTIVE_BOOKING_STATUSES


class BookingQueryService:
    """Read-side helpers for bookings"""

    @staticmethod
    def get_active_bookings(
            db: Session,
            staff_ids: Iterable[str],
            range_start: datetime,
            range_end: datetime,
    ) -> List[Booking]:
        """Active bookings of the given staff overlapping [range_start, range_end)"""
        staff_ids = list(staff_ids)
        if not staff_ids:
            return []
        return db.query(Booking).filter(
            Booking.staff_id.in_(staff_ids),
            Booking.start_ts < range_end,
            Booking.end_ts > range_start,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).order_by(Booking.start_ts).all()

    @staticmethod
    def find_overlapping(
            db: Session,
            staff_id: str,
            start_ts: datetime,
            end_ts: datetime,
    ) -> List[Booking]:
        """Active bookings of one staff member intersecting [start_ts, end_ts)"""
        return BookingQueryService.get_active_bookings(db, [staff_id], start_ts, end_ts)
