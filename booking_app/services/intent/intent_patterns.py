# booking_app/services/intent/intent_patterns.py
"""
Weighted keyword and regex tables per supported language.

Strong intents score higher per hit. Keywords alone form the degraded
keyword-only table used when full classification fails.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Pattern

from booking_app.schemas.booking_intent import IntentType
from booking_app.schemas.language import Language


@dataclass(frozen=True)
class IntentPattern:
    keywords: List[str]
    weight: float
    patterns: List[Pattern] = field(default_factory=list)
    strong: bool = False


def _rx(*expressions: str) -> List[Pattern]:
    return [re.compile(e, re.IGNORECASE) for e in expressions]


INTENT_PATTERNS: Dict[Language, Dict[IntentType, IntentPattern]] = {
    Language.EN: {
        IntentType.NEW_BOOKING: IntentPattern(
            keywords=["book", "booking", "appointment", "schedule", "reserve", "reservation",
                      "make", "need", "want", "would like"],
            patterns=_rx(
                r"\b(book|schedule|reserve)\s+(a|an|me|for)\b",
                r"\b(make|need)\s+(a|an)\s+(booking|appointment|reservation)\b",
                r"\b(want|would like)\s+to\s+(book|schedule|reserve)\b",
                r"\bat\s+\d{1,2}([:.]\d{2})?\s*(am|pm|h)?\b",
                r"\b(tomorrow|today|monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CANCEL_BOOKING: IntentPattern(
            keywords=["cancel", "cancellation", "abort"],
            patterns=_rx(
                r"\bcancel\s+(my|the)?\s*(booking|appointment|reservation)\b",
                r"\b(want|need)\s+to\s+cancel\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.MODIFY_BOOKING: IntentPattern(
            keywords=["change", "modify", "reschedule", "move", "shift"],
            patterns=_rx(
                r"\b(change|modify|reschedule)\s+(my|the)?\s*(booking|appointment)\b",
                r"\bmove\s+(my|the)?\s*(booking|appointment)\s+to\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.AVAILABILITY_QUESTION: IntentPattern(
            keywords=["available", "availability", "free", "open", "slot", "slots"],
            patterns=_rx(
                r"\b(when|what time)\s+(are you|is)\s+(available|open|free)\b",
                r"\bdo you have\s+(any)?\s*(available|free|open)\s*(time|slot)",
                r"\bavailable\s+(times?|slots?|hours?)\b",
                r"\bwhat\s+times?\s+(are|is)\s+(available|free)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CONVERSATIONAL: IntentPattern(
            keywords=["hello", "hi", "hey", "thanks", "thank you", "good morning", "good evening", "help"],
            patterns=_rx(r"^(hi|hey|hello)\b", r"\bthank(s| you)\b"),
            weight=0.8,
        ),
    },
    Language.RU: {
        IntentType.NEW_BOOKING: IntentPattern(
            keywords=["забронировать", "записаться", "запишите", "запись", "бронирование", "хочу", "нужно"],
            patterns=_rx(
                r"\b(хочу|нужно|можно)\s+(записаться|забронировать)\b",
                r"\bв\s+\d{1,2}([:.]\d{2})?\b",
                r"\b(завтра|сегодня|понедельник|вторник|сред[ау]|четверг|пятниц[ау]|суббот[ау]|воскресенье)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CANCEL_BOOKING: IntentPattern(
            keywords=["отменить", "отмена", "аннулировать"],
            patterns=_rx(r"\bотменить\s+(мою\s+)?(запись|бронирование)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.MODIFY_BOOKING: IntentPattern(
            keywords=["изменить", "перенести", "поменять", "другое время"],
            patterns=_rx(r"\b(изменить|перенести)\s+(мою\s+)?(запись|бронирование)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.AVAILABILITY_QUESTION: IntentPattern(
            keywords=["свободно", "свободное", "доступно", "окошко", "окно"],
            patterns=_rx(r"\bкогда\s+(можно|свободно|доступно)\b", r"\bесть\s+(ли\s+)?(свободное|время|окошко)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.CONVERSATIONAL: IntentPattern(
            keywords=["привет", "здравствуйте", "добрый день", "спасибо", "благодарю"],
            patterns=_rx(r"^(привет|здравствуйте)\b", r"\bспасибо\b"),
            weight=0.7,
        ),
    },
    Language.ES: {
        IntentType.NEW_BOOKING: IntentPattern(
            keywords=["reservar", "reserva", "cita", "agendar", "quiero", "necesito"],
            patterns=_rx(
                r"\b(quiero|necesito|puedo)\s+(reservar|agendar|una cita)\b",
                r"\ba las?\s+\d{1,2}([:.]\d{2})?\b",
                r"\b(mañana|hoy|lunes|martes|miércoles|jueves|viernes|sábado|domingo)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CANCEL_BOOKING: IntentPattern(
            keywords=["cancelar", "cancelación", "anular"],
            patterns=_rx(r"\bcancelar\s+(la|mi)?\s*(reserva|cita)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.MODIFY_BOOKING: IntentPattern(
            keywords=["cambiar", "modificar", "reprogramar", "mover"],
            patterns=_rx(r"\b(cambiar|modificar|reprogramar)\s+(la|mi)?\s*(reserva|cita)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.AVAILABILITY_QUESTION: IntentPattern(
            keywords=["disponible", "disponibilidad", "libre", "horarios"],
            patterns=_rx(r"\bcuándo\s+(está|hay|tienen)\s+(disponible|libre)\b", r"\bhay\s+(algún\s+)?hueco\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.CONVERSATIONAL: IntentPattern(
            keywords=["hola", "buenos días", "buenas tardes", "gracias"],
            patterns=_rx(r"^hola\b", r"\bgracias\b"),
            weight=0.7,
        ),
    },
    Language.PT: {
        IntentType.NEW_BOOKING: IntentPattern(
            keywords=["agendar", "marcar", "reservar", "reserva", "horário", "quero", "preciso"],
            patterns=_rx(
                r"\b(quero|preciso|posso)\s+(agendar|marcar|reservar)\b",
                r"\bàs?\s+\d{1,2}([:.]\d{2}|h)?\b",
                r"\b(amanhã|hoje|segunda|terça|quarta|quinta|sexta|sábado|domingo)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CANCEL_BOOKING: IntentPattern(
            keywords=["cancelar", "cancelamento", "desmarcar"],
            patterns=_rx(r"\bcancelar\s+(o|a|meu|minha)?\s*(agendamento|reserva|horário)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.MODIFY_BOOKING: IntentPattern(
            keywords=["mudar", "alterar", "remarcar", "trocar"],
            patterns=_rx(r"\b(mudar|alterar|remarcar)\s+(o|a|meu|minha)?\s*(agendamento|reserva|horário)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.AVAILABILITY_QUESTION: IntentPattern(
            keywords=["disponível", "disponibilidade", "livre", "vaga"],
            patterns=_rx(r"\bquando\s+(tem|há|está)\s+(disponível|livre|vaga)\b", r"\btem\s+(algum\s+)?horário\s+livre\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.CONVERSATIONAL: IntentPattern(
            keywords=["olá", "oi", "bom dia", "boa tarde", "obrigado", "obrigada"],
            patterns=_rx(r"^(olá|oi)\b", r"\bobrigad[oa]\b"),
            weight=0.7,
        ),
    },
    Language.HE: {
        IntentType.NEW_BOOKING: IntentPattern(
            keywords=["להזמין", "הזמנה", "לקבוע", "תור", "רוצה", "צריך"],
            patterns=_rx(
                r"\b(רוצה|צריך|אפשר)\s+(להזמין|לקבוע|תור)\b",
                r"\bב-?\s*\d{1,2}([:.]\d{2})?\b",
                r"\b(מחר|היום|ראשון|שני|שלישי|רביעי|חמישי|שישי|שבת)\b",
            ),
            weight=0.9,
            strong=True,
        ),
        IntentType.CANCEL_BOOKING: IntentPattern(
            keywords=["לבטל", "ביטול"],
            patterns=_rx(r"\bלבטל\s+(את)?\s*(ההזמנה|התור)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.MODIFY_BOOKING: IntentPattern(
            keywords=["לשנות", "לדחות", "להעביר"],
            patterns=_rx(r"\b(לשנות|לדחות|להעביר)\s+(את)?\s*(ההזמנה|התור)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.AVAILABILITY_QUESTION: IntentPattern(
            keywords=["פנוי", "פנויים", "זמין"],
            patterns=_rx(r"\bמתי\s+(יש|פנוי|זמין)\b"),
            weight=0.85,
            strong=True,
        ),
        IntentType.CONVERSATIONAL: IntentPattern(
            keywords=["שלום", "היי", "בוקר טוב", "תודה"],
            patterns=_rx(r"^(שלום|היי)\b", r"\bתודה\b"),
            weight=0.7,
        ),
    },
}


def patterns_for(language: Language) -> Dict[IntentType, IntentPattern]:
    return INTENT_PATTERNS.get(language) or INTENT_PATTERNS[Language.EN]
