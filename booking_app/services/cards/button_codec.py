# booking_app/services/cards/button_codec.py
"""
Interactive button id encoding.

Ids carry everything needed to rebuild the selection without a store
round-trip:

    slot:{staff_id}:{service_id}:{YYYYMMDD}:{HHMM}:{HHMM}
    confirm:{staff_id}:{service_id}:{YYYYMMDD}:{HHMM}:{HHMM}
    service:{service_id}
    action:{change_slot|cancel|more}
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from booking_app.core.errors import ValidationError
from booking_app.schemas.slots import SlotCandidate

logger = logging.getLogger(__name__)

SEPARATOR = ":"

KIND_SLOT = "slot"
KIND_CONFIRM = "confirm"
KIND_SERVICE = "service"
KIND_ACTION = "action"

ACTION_CHANGE_SLOT = "change_slot"
ACTION_CANCEL = "cancel"
ACTION_MORE = "more"
ACTIONS = (ACTION_CHANGE_SLOT, ACTION_CANCEL, ACTION_MORE)


@dataclass(frozen=True)
class DecodedButton:
    kind: str
    slot: Optional[SlotCandidate] = None
    service_id: Optional[str] = None
    action: Optional[str] = None


def _slot_payload(slot: SlotCandidate) -> str:
    for value in (slot.staff_id, slot.service_id):
        if SEPARATOR in value:
            raise ValueError(f"Identifier may not contain '{SEPARATOR}': {value}")
    return SEPARATOR.join([
        slot.staff_id,
        slot.service_id,
        slot.date.strftime("%Y%m%d"),
        slot.start_time.strftime("%H%M"),
        slot.end_time.strftime("%H%M"),
    ])


def encode_slot(slot: SlotCandidate) -> str:
    return f"{KIND_SLOT}{SEPARATOR}{_slot_payload(slot)}"


def encode_confirm(slot: SlotCandidate) -> str:
    return f"{KIND_CONFIRM}{SEPARATOR}{_slot_payload(slot)}"


def encode_service(service_id: str) -> str:
    return f"{KIND_SERVICE}{SEPARATOR}{service_id}"


def encode_action(action: str) -> str:
    if action not in ACTIONS:
        raise ValueError(f"Unknown action: {action}")
    return f"{KIND_ACTION}{SEPARATOR}{action}"


def _decode_slot(parts) -> SlotCandidate:
    if len(parts) != 5:
        raise ValidationError("Malformed slot button", parts=len(parts))
    staff_id, service_id, day, start, end = parts
    try:
        return SlotCandidate(
            staff_id=staff_id,
            service_id=service_id,
            date=datetime.strptime(day, "%Y%m%d").date(),
            start_time=datetime.strptime(start, "%H%M").time(),
            end_time=datetime.strptime(end, "%H%M").time(),
        )
    except ValueError as e:
        raise ValidationError(f"Malformed slot button: {e}")


def decode_button(button_id: str) -> DecodedButton:
    """Parse an interactive selection id; raises ValidationError when malformed"""
    if not button_id or SEPARATOR not in button_id:
        raise ValidationError(f"Unrecognized button id: {button_id!r}")

    kind, _, payload = button_id.partition(SEPARATOR)

    if kind in (KIND_SLOT, KIND_CONFIRM):
        return DecodedButton(kind=kind, slot=_decode_slot(payload.split(SEPARATOR)))
    if kind == KIND_SERVICE and payload:
        return DecodedButton(kind=kind, service_id=payload)
    if kind == KIND_ACTION and payload in ACTIONS:
        return DecodedButton(kind=kind, action=payload)

    logger.warning(f"Unrecognized button id: {button_id}")
    raise ValidationError(f"Unrecognized button id: {button_id!r}")
