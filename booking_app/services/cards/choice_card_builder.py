# booking_app/services/cards/choice_card_builder.py
"""Renders slots, confirmations and errors as transport-neutral cards"""
import logging
from typing import Iterable, List, Optional, Sequence, Union

from booking_app.config.settings import get_settings
from booking_app.core.errors import ErrorKind
from booking_app.schemas.choice_card import ChoiceCard, ChoiceItem, TextMessage
from booking_app.schemas.language import Language, DEFAULT_LANGUAGE
from booking_app.schemas.slots import RankedSlot, SlotCandidate
from booking_app.services.cards import button_codec
from booking_app.services.cards.translations import format_clock, format_day, get_text

logger = logging.getLogger(__name__)
settings = get_settings()

# Message key per error kind
ERROR_MESSAGE_KEYS = {
    ErrorKind.VALIDATION: "VALIDATION",
    ErrorKind.OUT_OF_HOURS: "OUT_OF_HOURS",
    ErrorKind.DURATION_EXCEEDS_WINDOW: "DURATION_EXCEEDS_WINDOW",
    ErrorKind.AVAILABILITY_CONFLICT: "SLOT_TAKEN",
    ErrorKind.SESSION_EXPIRED: "SESSION_EXPIRED",
    ErrorKind.STAFF_UNAVAILABLE: "STAFF_UNAVAILABLE",
    ErrorKind.SERVICE_NOT_FOUND: "SERVICE_NOT_FOUND",
    ErrorKind.NO_AVAILABILITY: "NO_ALTERNATIVES",
    ErrorKind.GENERIC: "ERROR",
}

STAR = "⭐"


def _slot_item(entry: Union[SlotCandidate, RankedSlot], language) -> ChoiceItem:
    if isinstance(entry, RankedSlot):
        slot, label_hint, starred = entry.slot, entry.proximity_label, entry.starred
    else:
        slot, label_hint, starred = entry, None, False

    label = f"{format_day(slot.date, language)} {format_clock(slot.start_time)}"
    if starred:
        label = f"{STAR} {label}"

    details = [d for d in (slot.staff_name, label_hint) if d]
    return ChoiceItem(
        id=button_codec.encode_slot(slot),
        label=label,
        description=" · ".join(details) or None,
    )


def build_slot_card(
        slots: Sequence[Union[SlotCandidate, RankedSlot]],
        language: Language = DEFAULT_LANGUAGE,
        lead_message: Optional[str] = None,
) -> ChoiceCard:
    """
    Card listing bookable slots, one item per slot in the given order.

    `slots` may be plain candidates or ranked alternatives; anything beyond
    the channel's list limit is dropped from the end.
    """
    if not slots:
        raise ValueError("No slots provided for card building")

    items = [_slot_item(entry, language) for entry in slots[:settings.MAX_CHOICE_ITEMS]]
    logger.debug(f"Built slot card with {len(items)} of {len(slots)} slots")
    return ChoiceCard(
        title=lead_message or get_text("SLOT_CARD_TITLE", language),
        body=get_text("SLOT_CARD_BODY", language),
        items=items,
        footer=get_text("CARD_FOOTER", language),
    )


def build_confirmation_card(slot: SlotCandidate, language: Language = DEFAULT_LANGUAGE) -> ChoiceCard:
    """Confirm / change-time card for a selected slot"""
    return ChoiceCard(
        title=get_text("CONFIRM_TITLE", language),
        body=get_text(
            "CONFIRM_BODY",
            language,
            date=format_day(slot.date, language),
            time=format_clock(slot.start_time),
            staff=slot.staff_name or "",
        ),
        items=[
            ChoiceItem(id=button_codec.encode_confirm(slot), label=get_text("CONFIRM_BUTTON", language)),
            ChoiceItem(
                id=button_codec.encode_action(button_codec.ACTION_CHANGE_SLOT),
                label=get_text("CHANGE_BUTTON", language),
            ),
        ],
        footer=get_text("CARD_FOOTER", language),
    )


def build_service_card(services: Iterable, language: Language = DEFAULT_LANGUAGE) -> ChoiceCard:
    """Card asking which catalog service to book"""
    items: List[ChoiceItem] = []
    for service in list(services)[:settings.MAX_CHOICE_ITEMS]:
        description = service.formatted_duration
        if service.price is not None:
            description = f"{description} · {service.price}"
        items.append(ChoiceItem(
            id=button_codec.encode_service(service.id),
            label=service.name,
            description=description,
        ))
    return ChoiceCard(
        title=get_text("SERVICE_CARD_TITLE", language),
        items=items,
        footer=get_text("CARD_FOOTER", language),
    )


def error_message_key(kind) -> str:
    try:
        return ERROR_MESSAGE_KEYS[ErrorKind(kind)]
    except ValueError:
        logger.warning(f"Unknown error kind {kind!r}, using generic message")
        return ERROR_MESSAGE_KEYS[ErrorKind.GENERIC]


def build_error_card(kind, language=DEFAULT_LANGUAGE, **params) -> TextMessage:
    """
    Localized text for an error kind. Unknown languages fall back to English
    and unknown kinds to the generic message; this never raises.
    """
    return TextMessage(text=get_text(error_message_key(kind), language, **params))


def build_text(key: str, language=DEFAULT_LANGUAGE, **params) -> TextMessage:
    return TextMessage(text=get_text(key, language, **params))


def build_booking_confirmed(booking, slot: SlotCandidate, language=DEFAULT_LANGUAGE) -> TextMessage:
    return build_text(
        "BOOKING_CONFIRMED",
        language,
        date=format_day(slot.date, language),
        time=format_clock(slot.start_time),
        staff=slot.staff_name or "",
        code=booking.booking_code,
    )
