# booking_app/schemas/session.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Tuple
from datetime import datetime, timedelta
import uuid

from booking_app.schemas.booking_intent import BookingIntent
from booking_app.schemas.language import Language
from booking_app.schemas.slots import SlotCandidate

# Bumped whenever a field is added; older payloads are upgraded on read
SESSION_SCHEMA_VERSION = 2


class ConversationSession(BaseModel):
    """
    In-flight booking selection for one (customer, facility).

    The record is immutable: every change produces a new record with a
    higher `version` that replaces the stored one wholesale.
    """
    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: f"sess_{uuid.uuid4().hex[:16]}")
    version: int = 1
    schema_version: int = SESSION_SCHEMA_VERSION

    customer_id: str
    facility_id: str
    language: Language = Language.EN

    original_intent: BookingIntent
    service_id: Optional[str] = None
    staff_id: Optional[str] = None

    candidate_slots: Tuple[SlotCandidate, ...] = ()
    selected_slot: Optional[SlotCandidate] = None

    created_at: datetime
    expires_at: datetime

    @classmethod
    def start(
            cls,
            customer_id: str,
            facility_id: str,
            intent: BookingIntent,
            now: datetime,
            ttl: timedelta,
            service_id: Optional[str] = None,
            staff_id: Optional[str] = None,
    ) -> "ConversationSession":
        return cls(
            customer_id=customer_id,
            facility_id=facility_id,
            language=intent.language,
            original_intent=intent,
            service_id=service_id,
            staff_id=staff_id,
            created_at=now,
            expires_at=now + ttl,
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def replace(self, **changes) -> "ConversationSession":
        """New record with the given fields changed and the version bumped"""
        changes["version"] = self.version + 1
        return self.model_copy(update=changes)

    def with_candidates(self, slots) -> "ConversationSession":
        return self.replace(candidate_slots=tuple(slots), selected_slot=None)

    def with_selected(self, slot: SlotCandidate) -> "ConversationSession":
        return self.replace(selected_slot=slot)
