# booking_app/services/intent/entity_extractor.py
"""
Deterministic extraction of booking entities from free text.

Dates: relative words (today, tomorrow, day after tomorrow), weekday names,
ISO `YYYY-MM-DD`, `DD.MM[.YYYY]` and `DD/MM[/YYYY]`.
Times: `HH:MM`, `HH.MM`, `3pm`, `15h30`, or a bare hour after a preposition
("at 15", "в 15", "a las 15", "às 15", "ב-15").
"""
import re
import logging
from datetime import date, time, timedelta
from typing import Iterable, Optional

from booking_app.core.errors import ValidationError
from booking_app.schemas.booking_intent import ExtractedEntities
from booking_app.schemas.language import Language

logger = logging.getLogger(__name__)

# Checked in order; longer phrases first so "day after tomorrow" wins over "tomorrow"
RELATIVE_DAYS = [
    (re.compile(r"\bday after tomorrow\b|\bпослезавтра\b|\bpasado mañana\b|\bdepois de amanhã\b|\bמחרתיים\b",
                re.IGNORECASE), 2),
    (re.compile(r"\btomorrow\b|\bзавтра\b|(?<!la )\bmañana\b|\bamanhã\b|\bמחר\b", re.IGNORECASE), 1),
    (re.compile(r"\btoday\b|\bсегодня\b|\bhoy\b|\bhoje\b|\bהיום\b", re.IGNORECASE), 0),
]

WEEKDAY_PATTERNS = [
    re.compile(r"\b(monday|понедельник|lunes|segunda(-feira)?|יום שני)\b", re.IGNORECASE),
    re.compile(r"\b(tuesday|вторник|martes|terça(-feira)?|יום שלישי)\b", re.IGNORECASE),
    re.compile(r"\b(wednesday|сред[аеуы]|mi[ée]rcoles|quarta(-feira)?|יום רביעי)\b", re.IGNORECASE),
    re.compile(r"\b(thursday|четверг|jueves|quinta(-feira)?|יום חמישי)\b", re.IGNORECASE),
    re.compile(r"\b(friday|пятниц[аеуы]|viernes|sexta(-feira)?|יום שישי)\b", re.IGNORECASE),
    re.compile(r"\b(saturday|суббот[аеуы]|s[áa]bado|שבת)\b", re.IGNORECASE),
    re.compile(r"\b(sunday|воскресень[ея]|domingo|יום ראשון)\b", re.IGNORECASE),
]

ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
DAY_MONTH = re.compile(r"\b(\d{1,2})[./](\d{1,2})(?:[./](\d{2,4}))?\b")

CLOCK = re.compile(r"\b(\d{1,2}):(\d{2})\s*(am|pm)?\b", re.IGNORECASE)
AM_PM = re.compile(r"\b(\d{1,2})\s*(am|pm)\b", re.IGNORECASE)
H_SUFFIX = re.compile(r"\b(\d{1,2})h(\d{2})?\b", re.IGNORECASE)
BARE_HOUR = re.compile(
    r"(?:\bat|\bв|\ba las?|\bàs?|ב-?|בשעה)\s*(\d{1,2})(?:\s*(?:час|hours?|horas?))?\b",
    re.IGNORECASE,
)
# "14.30": a clock time when the second part cannot be a month or a time preposition precedes it
DOTTED_CLOCK = re.compile(
    r"(?:(\bat|\bв|\ba las?|\bàs?|ב-?|בשעה)\s*)?\b(\d{1,2})\.(\d{2})\b(?![./]\d)",
    re.IGNORECASE,
)


def _next_weekday(today: date, weekday: int) -> date:
    """Nearest date with the given weekday, today included"""
    return today + timedelta(days=(weekday - today.weekday()) % 7)



def _dotted_clocks(text: str) -> list:
    """DOTTED_CLOCK matches that read as a time of day rather than a date"""
    clocks = []
    for match in DOTTED_CLOCK.finditer(text):
        hour, minute = int(match.group(2)), int(match.group(3))
        if hour > 23 or minute > 59:
            continue
        if match.group(1) or not 1 <= minute <= 12:
            clocks.append(match)
    return clocks


def _make_date(year: int, month: int, day: int, raw: str) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise ValidationError(f"Invalid date: {raw}", raw=raw)


def extract_date(text: str, today: date) -> Optional[date]:
    """Requested date, or None when the message mentions none"""
    match = ISO_DATE.search(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _make_date(year, month, day, match.group(0))

    clock_starts = {m.start(2) for m in _dotted_clocks(text)}
    match = next((m for m in DAY_MONTH.finditer(text) if m.start() not in clock_starts), None)
    if match:
        day, month = int(match.group(1)), int(match.group(2))
        if match.group(3):
            year = int(match.group(3))
            if year < 100:
                year += 2000
            return _make_date(year, month, day, match.group(0))
        candidate = _make_date(today.year, month, day, match.group(0))
        # Without a year, a date already past means next year
        if candidate < today:
            candidate = _make_date(today.year + 1, month, day, match.group(0))
        return candidate

    for pattern, offset in RELATIVE_DAYS:
        if pattern.search(text):
            return today + timedelta(days=offset)

    for weekday, pattern in enumerate(WEEKDAY_PATTERNS):
        if pattern.search(text):
            return _next_weekday(today, weekday)

    return None


def _make_time(hour: int, minute: int, raw: str) -> time:
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"Invalid time: {raw}", raw=raw)
    return time(hour, minute)


def _apply_meridiem(hour: int, meridiem: Optional[str], raw: str) -> int:
    if not meridiem:
        return hour
    if not 1 <= hour <= 12:
        raise ValidationError(f"Invalid time: {raw}", raw=raw)
    if meridiem.lower() == "pm":
        return hour % 12 + 12
    return hour % 12


def extract_time(text: str) -> Optional[time]:
    """Requested start time, or None when the message mentions none"""
    match = CLOCK.search(text)
    if match:
        hour = _apply_meridiem(int(match.group(1)), match.group(3), match.group(0))
        return _make_time(hour, int(match.group(2)), match.group(0))

    clocks = _dotted_clocks(text)
    if clocks:
        return time(int(clocks[0].group(2)), int(clocks[0].group(3)))

    match = AM_PM.search(text)
    if match:
        hour = _apply_meridiem(int(match.group(1)), match.group(2), match.group(0))
        return _make_time(hour, 0, match.group(0))

    match = H_SUFFIX.search(text)
    if match:
        return _make_time(int(match.group(1)), int(match.group(2) or 0), match.group(0))

    match = BARE_HOUR.search(text)
    if match:
        return _make_time(int(match.group(1)), 0, match.group(0))

    return None


def match_catalog_name(text: str, names: Iterable[str]) -> Optional[str]:
    """Longest catalog name contained in the text, case-insensitive"""
    lowered = text.lower()
    best = None
    for name in names:
        if not name:
            continue
        if name.lower() in lowered and (best is None or len(name) > len(best)):
            best = name
    return best


def match_staff_name(text: str, names: Iterable[str]) -> Optional[str]:
    """Full staff name or a first name mentioned as a whole word"""
    names = [n for n in names if n]
    full = match_catalog_name(text, names)
    if full:
        return full

    words = set(re.findall(r"[^\W\d_]+", text.lower()))
    for name in sorted(names):
        first = name.split()[0].lower()
        if first in words:
            return name
    return None


def extract_entities(
        text: str,
        language: Language,
        today: date,
        service_names: Iterable[str] = (),
        staff_names: Iterable[str] = (),
) -> ExtractedEntities:
    """
    Extract every entity from one message.

    Raises ValidationError when an explicit date or time is present but
    cannot be a real calendar date or clock time.
    """
    entities = ExtractedEntities(
        service_name=match_catalog_name(text, service_names),
        staff_name_preference=match_staff_name(text, staff_names),
        desired_date=extract_date(text, today),
        desired_time=extract_time(text),
    )
    logger.debug(f"Extracted entities ({language.value}): {entities.model_dump(exclude_none=True)}")
    return entities
