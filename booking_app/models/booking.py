# booking_app/models/booking.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.sql import func
import enum
import uuid
from booking_app.models.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that occupy the staff member's calendar
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.IN_PROGRESS.value,
)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("facility_id", "booking_code", name="uq_bookings_facility_code"),
        Index("ix_bookings_staff_start", "staff_id", "start_ts"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # References
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False)
    staff_id = Column(String(36), ForeignKey("staff.id"), nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    customer_id = Column(String(100), nullable=False, index=True)

    # Facility-local wall clock, half-open [start_ts, end_ts)
    start_ts = Column(DateTime, nullable=False)
    end_ts = Column(DateTime, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    booking_code = Column(String(20), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Booking(id={self.id}, code={self.booking_code}, staff_id={self.staff_id})>"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES
