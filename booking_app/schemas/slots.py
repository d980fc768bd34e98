# booking_app/schemas/slots.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import datetime as dt


class SlotCandidate(BaseModel):
    """A bookable (staff, date, start, end) interval; identity is (staff_id, date, start_time)"""
    model_config = ConfigDict(frozen=True)

    staff_id: str
    service_id: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    staff_name: Optional[str] = Field(None, description="Display name, not part of identity")

    @property
    def identity(self):
        return (self.staff_id, self.date, self.start_time)

    @property
    def start_dt(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.start_time)

    @property
    def end_dt(self) -> dt.datetime:
        return dt.datetime.combine(self.date, self.end_time)

    def __eq__(self, other):
        if not isinstance(other, SlotCandidate):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self):
        return hash(self.identity)


class RankedSlot(BaseModel):
    """Slot annotated by the alternative suggester"""
    model_config = ConfigDict(frozen=True)

    slot: SlotCandidate
    rank: int
    distance_minutes: int = Field(..., description="Absolute distance to the requested instant")
    proximity_label: Optional[str] = None
    starred: bool = False
