# booking_app/models/__init__.py
from .base import Base
from .facility import Facility, Staff
from .service import Service
from .booking import Booking, BookingStatus, ACTIVE_BOOKING_STATUSES

__all__ = [
    "Base",
    "Facility",
    "Staff",
    "Service",
    "Booking",
    "BookingStatus",
    "ACTIVE_BOOKING_STATUSES",
]
