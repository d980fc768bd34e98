# booking_app/schemas/__init__.py
from .language import Language, normalize_language
from .working_hours import WorkingHoursSpec, DaySchedule, BreakInterval
from .booking_intent import IntentType, ExtractedEntities, IntentClassification, BookingIntent
from .slots import SlotCandidate, RankedSlot
from .session import ConversationSession, SESSION_SCHEMA_VERSION
from .choice_card import ChoiceItem, ChoiceCard, TextMessage, OutboundResponse
from .inbound import InboundEvent

__all__ = [
    "Language",
    "normalize_language",
    "WorkingHoursSpec",
    "DaySchedule",
    "BreakInterval",
    "IntentType",
    "ExtractedEntities",
    "IntentClassification",
    "BookingIntent",
    "SlotCandidate",
    "RankedSlot",
    "ConversationSession",
    "SESSION_SCHEMA_VERSION",
    "ChoiceItem",
    "ChoiceCard",
    "TextMessage",
    "OutboundResponse",
    "InboundEvent",
]
