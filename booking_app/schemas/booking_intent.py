# booking_app/schemas/booking_intent.py
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, time
from enum import Enum

from booking_app.schemas.language import Language


class IntentType(str, Enum):
    NEW_BOOKING = "new_booking"
    MODIFY_BOOKING = "modify_booking"
    CANCEL_BOOKING = "cancel_booking"
    AVAILABILITY_QUESTION = "availability_question"
    CONVERSATIONAL = "conversational"
    UNKNOWN = "unknown"


# Intents that start or continue a slot selection
BOOKING_INTENTS = (IntentType.NEW_BOOKING, IntentType.AVAILABILITY_QUESTION)


class ExtractedEntities(BaseModel):
    """Entities pulled out of a customer message"""
    model_config = ConfigDict(frozen=True)

    service_name: Optional[str] = Field(None, description="Catalog service name mentioned")
    staff_name_preference: Optional[str] = Field(None, description="Staff member asked for")
    desired_date: Optional[date] = None
    desired_time: Optional[time] = None


class IntentClassification(BaseModel):
    """Raw classifier output before threshold routing"""
    model_config = ConfigDict(frozen=True)

    intent_type: IntentType
    confidence: float = Field(..., ge=0.0, le=1.0)
    language: Language = Language.EN
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    degraded: bool = Field(False, description="Produced by the keyword-only fallback")


class BookingIntent(BaseModel):
    """Immutable interpretation of one inbound message"""
    model_config = ConfigDict(frozen=True)

    raw_text: str
    language: Language = Language.EN
    intent_type: IntentType
    confidence: float = Field(..., ge=0.0, le=1.0)
    service_name: Optional[str] = None
    staff_name_preference: Optional[str] = None
    desired_date: Optional[date] = None
    desired_time: Optional[time] = None

    @classmethod
    def from_classification(
            cls, raw_text: str, classification: IntentClassification, intent_type: IntentType
    ) -> "BookingIntent":
        entities = classification.entities
        return cls(
            raw_text=raw_text,
            language=classification.language,
            intent_type=intent_type,
            confidence=classification.confidence,
            service_name=entities.service_name,
            staff_name_preference=entities.staff_name_preference,
            desired_date=entities.desired_date,
            desired_time=entities.desired_time,
        )
