# ============================================================================
# booking_app/services/booking/booking_commit_service.py
# ============================================================================
"""
Transactional booking commit.

REQUESTED -> LOCKED -> COMMITTED | CONFLICTED

The staff lock is the single source of correctness against double-booking:
inside it, overlapping active bookings are re-queried and the new row is
inserted in the same transaction. Conflicts are results, not retries.
"""
import enum
import logging
import time
from datetime import datetime
from typing import Union
from uuid import uuid4

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from booking_app.config.settings import get_settings
from booking_app.core.errors import AvailabilityConflict, BookingCommitFailed, StaffUnavailable, ValidationError
from booking_app.models.booking import Booking, BookingStatus
from booking_app.models.facility import Staff
from booking_app.services.booking.booking_code import generate_booking_code
from booking_app.services.booking.booking_query_service import BookingQueryService
from booking_app.services.booking.resource_lock import StaffLockRegistry

logger = logging.getLogger(__name__)
settings = get_settings()


class CommitState(str, enum.Enum):
    REQUESTED = "requested"
    LOCKED = "locked"
    COMMITTED = "committed"
    CONFLICTED = "conflicted"


CommitResult = Union[Booking, AvailabilityConflict]


class BookingCommitService:
    """Creates bookings; the only writer of the bookings table"""

    locks = StaffLockRegistry()

    @staticmethod
    def _backoff(attempt: int) -> float:
        delays = settings.COMMIT_BACKOFF_SECONDS or [0.0]
        return delays[min(attempt - 1, len(delays) - 1)]

    @staticmethod
    def _attempt(
            db: Session,
            facility_id: str,
            staff_id: str,
            service_id: str,
            customer_id: str,
            start_ts: datetime,
            end_ts: datetime,
    ) -> CommitResult:
        state = CommitState.REQUESTED

        with BookingCommitService.locks.hold(staff_id, timeout=settings.COMMIT_LOCK_TIMEOUT_SECONDS):
            # Row lock on the staff member serializes commits across processes
            staff = db.query(Staff).filter(Staff.id == staff_id).with_for_update().first()
            if staff is None or not staff.is_active or staff.facility_id != facility_id:
                db.rollback()
                raise StaffUnavailable(f"Staff {staff_id} cannot take bookings", staff_id=staff_id)
            state = CommitState.LOCKED

            overlapping = BookingQueryService.find_overlapping(db, staff_id, start_ts, end_ts)
            if overlapping:
                db.rollback()
                state = CommitState.CONFLICTED
                logger.info(
                    f"Commit {state.value}: staff {staff_id} {start_ts}-{end_ts} "
                    f"overlaps {[b.id for b in overlapping]}"
                )
                return AvailabilityConflict(
                    staff_id=staff_id,
                    start_ts=start_ts,
                    end_ts=end_ts,
                    conflicting_booking_ids=tuple(b.id for b in overlapping),
                    reason="overlapping active booking",
                )

            booking = Booking(
                id=str(uuid4()),
                facility_id=facility_id,
                staff_id=staff_id,
                service_id=service_id,
                customer_id=customer_id,
                start_ts=start_ts,
                end_ts=end_ts,
                status=BookingStatus.CONFIRMED.value,
                booking_code=generate_booking_code(),
            )
            db.add(booking)
            db.commit()
            state = CommitState.COMMITTED

        db.refresh(booking)
        logger.info(f"Commit {state.value}: booking {booking.booking_code} for staff {staff_id} at {start_ts}")
        return booking

    @staticmethod
    def commit(
            db: Session,
            *,
            facility_id: str,
            staff_id: str,
            service_id: str,
            customer_id: str,
            start_ts: datetime,
            end_ts: datetime,
    ) -> CommitResult:
        """
        Book [start_ts, end_ts) for the staff member.

        Returns the new Booking, or AvailabilityConflict when the interval is
        already taken. Lock timeouts and database errors are retried with
        backoff up to COMMIT_MAX_ATTEMPTS; a booking code collision is
        retried with a fresh code. Exhausted retries raise BookingCommitFailed.
        """
        if end_ts <= start_ts:
            raise ValidationError(f"Booking end {end_ts} must be after start {start_ts}")

        attempts = settings.COMMIT_MAX_ATTEMPTS
        last_error = None

        for attempt in range(1, attempts + 1):
            try:
                return BookingCommitService._attempt(
                    db, facility_id, staff_id, service_id, customer_id, start_ts, end_ts
                )
            except IntegrityError as e:
                db.rollback()
                last_error = e
                logger.warning(f"Booking code collision for facility {facility_id}, regenerating (attempt {attempt})")
            except (DBAPIError, TimeoutError) as e:
                db.rollback()
                last_error = e
                if attempt == attempts:
                    break
                delay = BookingCommitService._backoff(attempt)
                logger.warning(
                    f"Commit attempt {attempt}/{attempts} for staff {staff_id} failed: {e}. "
                    f"Retrying in {delay}s"
                )
                time.sleep(delay)

        logger.error(f"Booking commit failed for staff {staff_id} at {start_ts} after {attempts} attempts: {last_error}")
        raise BookingCommitFailed(
            "Booking could not be committed",
            staff_id=staff_id,
            start_ts=start_ts.isoformat(),
        ) from last_error
