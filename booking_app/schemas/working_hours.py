# booking_app/schemas/working_hours.py
from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
import re

_HHMM = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class BreakInterval(BaseModel):
    """A pause inside a working day"""
    start: str = Field(..., description="Break start, HH:MM")
    end: str = Field(..., description="Break end, HH:MM")

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        if not _HHMM.match(v.strip()):
            raise ValueError(f"Invalid HH:MM time: {v!r}")
        return v.strip()


class DaySchedule(BaseModel):
    """Open interval for one weekday"""
    start: str = Field(..., description="Opening time, HH:MM")
    end: str = Field(..., description="Closing time, HH:MM")
    breaks: List[BreakInterval] = Field(default_factory=list)

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        if not _HHMM.match(v.strip()):
            raise ValueError(f"Invalid HH:MM time: {v!r}")
        return v.strip()


class WorkingHoursSpec(BaseModel):
    """Per-weekday schedule; a weekday absent from `days` is closed"""
    days: Dict[str, DaySchedule] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Optional[dict]) -> "WorkingHoursSpec":
        """Build from the JSON column shape {"monday": {...}, ...}; unknown keys are dropped"""
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise ValueError("Working hours must be a mapping of weekday to schedule")
        days = {
            key.strip().lower(): value
            for key, value in raw.items()
            if isinstance(key, str) and key.strip().lower() in WEEKDAYS and value
        }
        return cls(days=days)

    def for_weekday(self, weekday: int) -> Optional[DaySchedule]:
        """Schedule for a Python weekday number (0=Monday)"""
        return self.days.get(WEEKDAYS[weekday])
