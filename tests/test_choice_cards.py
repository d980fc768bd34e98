"""Choice cards, button ids and localized messages."""

from datetime import time
from decimal import Decimal
from types import SimpleNamespace

import pytest

from booking_app.config.settings import get_settings
from booking_app.core.errors import ErrorKind, ValidationError
from booking_app.schemas.language import DEFAULT_LANGUAGE, Language, configured_default_language, normalize_language
from booking_app.schemas.slots import SlotCandidate
from booking_app.services.availability.alternative_suggester import rank_by_time_proximity
from booking_app.services.cards import button_codec
from booking_app.services.cards.choice_card_builder import (
    build_booking_confirmed,
    build_confirmation_card,
    build_error_card,
    build_service_card,
    build_slot_card,
)
from booking_app.services.cards.translations import MESSAGES, format_day, get_text
from tests.conftest import WEDNESDAY


def make_slot(hour=10, minute=0, staff_id="staff-1", staff_name="Anna"):
    return SlotCandidate(
        staff_id=staff_id,
        service_id="svc-1",
        date=WEDNESDAY,
        start_time=time(hour, minute),
        end_time=time(hour + 1, minute),
        staff_name=staff_name,
    )


class TestButtonCodec:
    def test_slot_id(self):
        assert button_codec.encode_slot(make_slot(14, 30)) == "slot:staff-1:svc-1:20241106:1430:1530"

    def test_slot_decodes_to_same_identity(self):
        decoded = button_codec.decode_button(button_codec.encode_confirm(make_slot(9, 15)))
        assert decoded.kind == button_codec.KIND_CONFIRM
        assert decoded.slot == make_slot(9, 15)
        assert decoded.slot.end_time == time(10, 15)

    def test_service_and_action(self):
        assert button_codec.decode_button("service:svc-9").service_id == "svc-9"
        assert button_codec.decode_button("action:more").action == button_codec.ACTION_MORE

    @pytest.mark.parametrize("button_id", [
        "",
        "nonsense",
        "slot:staff-1:svc-1:20241106:1430",
        "slot:staff-1:svc-1:20241399:1430:1530",
        "action:dance",
        "service:",
        "teleport:somewhere",
    ])
    def test_malformed_ids(self, button_id):
        with pytest.raises(ValidationError):
            button_codec.decode_button(button_id)

    def test_separator_in_identifier_rejected(self):
        with pytest.raises(ValueError):
            button_codec.encode_slot(make_slot(staff_id="a:b"))


class TestSlotCard:
    def test_one_item_per_slot(self):
        card = build_slot_card([make_slot(10), make_slot(11)])
        assert [item.label for item in card.items] == ["Wed 06.11 10:00", "Wed 06.11 11:00"]
        assert card.items[0].id == button_codec.encode_slot(make_slot(10))
        assert card.title == MESSAGES["SLOT_CARD_TITLE"][Language.EN]

    def test_ranked_slots_starred_and_labelled(self):
        ranked = rank_by_time_proximity([make_slot(10), make_slot(12)], time(10, 0))
        card = build_slot_card(ranked, lead_message="Closest options")
        assert card.title == "Closest options"
        assert card.items[0].label.startswith("⭐")
        assert "requested time" in card.items[0].description
        assert "Anna" in card.items[0].description

    def test_capped_to_channel_limit(self):
        slots = [make_slot(9, m, staff_id=f"staff-{m}") for m in range(0, 60, 4)]
        assert len(build_slot_card(slots).items) == 10

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            build_slot_card([])

    def test_localized(self):
        card = build_slot_card([make_slot()], Language.RU)
        assert card.title == MESSAGES["SLOT_CARD_TITLE"][Language.RU]
        assert card.items[0].label.startswith("Ср")


class TestOtherCards:
    def test_confirmation_card(self):
        card = build_confirmation_card(make_slot(14))
        assert [item.id for item in card.items] == [
            button_codec.encode_confirm(make_slot(14)),
            "action:change_slot",
        ]
        assert "14:00" in card.body
        assert "Anna" in card.body

    def test_service_card(self):
        services = [
            SimpleNamespace(id="svc-1", name="Haircut", formatted_duration="1h", price=Decimal("35.00")),
            SimpleNamespace(id="svc-2", name="Beard Trim", formatted_duration="30min", price=None),
        ]
        card = build_service_card(services)
        assert [item.id for item in card.items] == ["service:svc-1", "service:svc-2"]
        assert card.items[0].description == "1h · 35.00"
        assert card.items[1].description == "30min"

    def test_booking_confirmed_text(self):
        message = build_booking_confirmed(SimpleNamespace(booking_code="BK-7QX2MA"), make_slot(14))
        assert "BK-7QX2MA" in message.text
        assert "14:00" in message.text


class TestLocalizedErrors:
    def test_unsupported_language_falls_back_to_english(self):
        message = build_error_card(ErrorKind.SESSION_EXPIRED, "xx-unsupported")
        assert message.text == MESSAGES["SESSION_EXPIRED"][Language.EN]

    def test_every_error_kind_has_a_message(self):
        for kind in ErrorKind:
            for language in Language:
                assert build_error_card(kind, language).text

    def test_unknown_kind_is_generic(self):
        assert build_error_card("meltdown").text == MESSAGES["ERROR"][Language.EN]

    def test_missing_translation_falls_back_to_english(self):
        assert get_text("DURATION_EXCEEDS_WINDOW", Language.HE) == get_text("DURATION_EXCEEDS_WINDOW", Language.EN)

    def test_missing_params_left_blank(self):
        text = get_text("SLOT_TAKEN", Language.EN)
        assert "{" not in text

    def test_unknown_key(self):
        assert get_text("NO_SUCH_KEY") == MESSAGES["ERROR"][Language.EN]

    def test_format_day(self):
        assert format_day(WEDNESDAY) == "Wed 06.11"


class TestDefaultLanguageSetting:
    @pytest.mark.parametrize("configured,expected", [
        ("ru", Language.RU),
        (" ES ", Language.ES),
        ("xx", Language.EN),
        ("", Language.EN),
    ])
    def test_configured_default(self, monkeypatch, configured, expected):
        monkeypatch.setattr(get_settings(), "DEFAULT_LANGUAGE", configured)
        assert configured_default_language() == expected

    def test_module_default_follows_setting(self):
        assert DEFAULT_LANGUAGE == Language.EN
        assert normalize_language(None) == Language.EN
