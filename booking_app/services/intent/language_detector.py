# booking_app/services/intent/language_detector.py
"""Offline language detection for the supported conversation languages"""
import re
import logging
from typing import Optional

from booking_app.schemas.language import Language, normalize_language, DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

CYRILLIC = re.compile(r"[Ѐ-ӿ]")
HEBREW = re.compile(r"[֐-׿]")
LETTER = re.compile(r"[^\W\d_]")

# Characters that only one of the two Iberian languages uses
SPANISH_MARKS = re.compile(r"[ñ¿¡]", re.IGNORECASE)
PORTUGUESE_MARKS = re.compile(r"[ãõçâêô]", re.IGNORECASE)

COMMON_WORDS = {
    Language.ES: {
        "hola", "buenos", "días", "gracias", "quiero", "cita", "corte", "precio",
        "cuánto", "mañana", "hoy", "reservar", "necesito", "las", "para",
    },
    Language.PT: {
        "olá", "bom", "dia", "obrigado", "obrigada", "quero", "agendar", "corte",
        "preço", "quanto", "amanhã", "hoje", "preciso", "horário", "marcar",
    },
    Language.EN: {
        "hello", "hi", "the", "book", "appointment", "haircut", "price", "when",
        "what", "tomorrow", "today", "want", "need", "please", "available",
    },
}

# Share of letters in a script above which the script decides the language
SCRIPT_THRESHOLD = 0.3


def detect_language(text: Optional[str], hint: Optional[str] = None) -> Language:
    """
    Detect the language of a customer message.

    A supported transport-provided `hint` wins. Otherwise non-Latin scripts
    decide first, then language-specific diacritics, then common words;
    anything else is the default language.
    """
    if hint:
        hinted = normalize_language(hint, default=None)
        if hinted is not None:
            return hinted

    if not text or not text.strip():
        return DEFAULT_LANGUAGE

    letters = LETTER.findall(text)
    if letters:
        if len(CYRILLIC.findall(text)) / len(letters) >= SCRIPT_THRESHOLD:
            return Language.RU
        if len(HEBREW.findall(text)) / len(letters) >= SCRIPT_THRESHOLD:
            return Language.HE

    if PORTUGUESE_MARKS.search(text):
        return Language.PT
    if SPANISH_MARKS.search(text):
        return Language.ES

    words = set(re.findall(r"[^\W\d_]+", text.lower()))
    scores = {lang: len(words & vocabulary) for lang, vocabulary in COMMON_WORDS.items()}
    best = max(scores, key=lambda lang: scores[lang])
    if scores[best] == 0 or list(scores.values()).count(scores[best]) > 1:
        return DEFAULT_LANGUAGE

    logger.debug(f"Detected language {best.value} by vocabulary ({scores[best]} words)")
    return best
