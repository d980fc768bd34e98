# booking_app/models/facility.py
"""
Facility and staff models

Working hours are stored as JSON in the shape
{"monday": {"start": "09:00", "end": "18:00", "breaks": [{"start": "13:00", "end": "14:00"}]}, ...}.
A weekday missing from the map is closed.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from booking_app.models.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)

    # Coarse opening hours, authoritative for every staff member
    working_hours = Column(JSON, nullable=False, default=dict)
    timezone = Column(String(50), default="UTC")

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    staff = relationship("Staff", back_populates="facility")
    services = relationship("Service", back_populates="facility")

    def __repr__(self):
        return f"<Facility(id={self.id}, name={self.name})>"


class Staff(Base):
    __tablename__ = "staff"

    id = Column(String(36), primary_key=True, default=_uuid)
    facility_id = Column(
        String(36), ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)

    # Fine-grained schedule; NULL means "follows facility hours"
    working_hours = Column(JSON, nullable=True)
    # Service categories this person performs; empty list means all
    specializations = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    facility = relationship("Facility", back_populates="staff")

    def __repr__(self):
        return f"<Staff(id={self.id}, name={self.name}, facility_id={self.facility_id})>"

    def performs(self, category) -> bool:
        """True when this staff member can perform a service of the given category"""
        if not self.specializations or not category:
            return True
        return category in self.specializations
