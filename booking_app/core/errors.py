# booking_app/core/errors.py
"""Booking error taxonomy; every kind maps onto a localized customer message"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    OUT_OF_HOURS = "out_of_hours"
    DURATION_EXCEEDS_WINDOW = "duration_exceeds_window"
    AVAILABILITY_CONFLICT = "availability_conflict"
    SESSION_EXPIRED = "session_expired"
    STAFF_UNAVAILABLE = "staff_unavailable"
    SERVICE_NOT_FOUND = "service_not_found"
    NO_AVAILABILITY = "no_availability"
    GENERIC = "generic"


class BookingError(Exception):
    """Base class for errors resolved into a customer-facing message"""
    kind = ErrorKind.GENERIC

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.kind.value)
        self.details = details


class ValidationError(BookingError):
    """Entities in the message could not be parsed"""
    kind = ErrorKind.VALIDATION


class SessionExpired(BookingError):
    """Selection references a session that no longer exists"""
    kind = ErrorKind.SESSION_EXPIRED


class StaffUnavailable(BookingError):
    """Staff member inactive or not working that day"""
    kind = ErrorKind.STAFF_UNAVAILABLE


class ServiceNotFound(BookingError):
    kind = ErrorKind.SERVICE_NOT_FOUND


class BookingCommitFailed(BookingError):
    """Infrastructure failure after bounded retries"""
    kind = ErrorKind.GENERIC


@dataclass(frozen=True)
class AvailabilityConflict:
    """Commit-time result: the interval was taken by someone else first"""
    staff_id: str
    start_ts: datetime
    end_ts: datetime
    conflicting_booking_ids: Tuple[str, ...] = field(default_factory=tuple)
    reason: Optional[str] = None

    kind = ErrorKind.AVAILABILITY_CONFLICT
