# ===== booking_app/services/availability/alternative_suggester.py =====
"""
Ranking of alternative slots.

Both rankings sort by absolute distance to the requested instant, break ties
by the earlier slot and then by staff id, and truncate to the channel's list
limit only after sorting.
"""
from datetime import date, datetime, time
from typing import Iterable, List, Optional
import logging

from booking_app.config.settings import get_settings
from booking_app.schemas.language import Language, DEFAULT_LANGUAGE
from booking_app.schemas.slots import RankedSlot, SlotCandidate
from booking_app.services.cards.translations import get_text

logger = logging.getLogger(__name__)
settings = get_settings()

# Only the closest few alternatives are highlighted
MAX_STAR_SLOTS = 3
STAR_TIME_RANGE_MINUTES = 180
STAR_DATE_RANGE_DAYS = 7


def _time_label(diff_minutes: int, language) -> Optional[str]:
    if diff_minutes == 0:
        return get_text("PROXIMITY_EXACT", language)
    if abs(diff_minutes) > STAR_TIME_RANGE_MINUTES:
        return None
    if diff_minutes > 0:
        return get_text("PROXIMITY_LATER", language, minutes=diff_minutes)
    return get_text("PROXIMITY_EARLIER", language, minutes=-diff_minutes)


def _date_label(diff_days: int, language) -> str:
    if diff_days == 0:
        return get_text("PROXIMITY_SAME_DAY", language)
    if diff_days > 0:
        return get_text("PROXIMITY_DAYS_LATER", language, days=diff_days)
    return get_text("PROXIMITY_DAYS_EARLIER", language, days=-diff_days)


def _cap(limit: Optional[int]) -> int:
    return limit if limit is not None else settings.MAX_CHOICE_ITEMS


def rank_by_time_proximity(
        slots: Iterable[SlotCandidate],
        target_time: time,
        language: Language = DEFAULT_LANGUAGE,
        limit: Optional[int] = None,
) -> List[RankedSlot]:
    """
    Rank same-day alternatives around `target_time`.

    Distance is measured on the wall clock of each slot's own date, so the
    ranking is meaningful when every slot falls on the requested day.
    """
    target_minute = target_time.hour * 60 + target_time.minute

    def signed_diff(slot: SlotCandidate) -> int:
        return slot.start_time.hour * 60 + slot.start_time.minute - target_minute

    ordered = sorted(
        set(slots),
        key=lambda s: (abs(signed_diff(s)), s.start_dt, s.staff_id),
    )[:_cap(limit)]

    ranked = []
    for index, slot in enumerate(ordered):
        diff = signed_diff(slot)
        ranked.append(RankedSlot(
            slot=slot,
            rank=index + 1,
            distance_minutes=abs(diff),
            proximity_label=_time_label(diff, language),
            starred=index < MAX_STAR_SLOTS and abs(diff) <= STAR_TIME_RANGE_MINUTES,
        ))

    logger.debug(f"Ranked {len(ranked)} slots by time proximity to {target_time}")
    return ranked


def rank_by_date_proximity(
        slots: Iterable[SlotCandidate],
        target_date: date,
        language: Language = DEFAULT_LANGUAGE,
        target_time: Optional[time] = None,
        limit: Optional[int] = None,
) -> List[RankedSlot]:
    """
    Rank alternatives on other days around `target_date`.

    With `target_time` the distance is to the exact requested instant, which
    prefers the same time of day on the nearest date; without it the distance
    is in whole days and the earliest slot of a day wins.
    """
    target = datetime.combine(target_date, target_time or time.min)

    def distance(slot: SlotCandidate) -> int:
        if target_time is None:
            return abs((slot.date - target_date).days) * 24 * 60
        return int(abs((slot.start_dt - target).total_seconds()) // 60)

    ordered = sorted(
        set(slots),
        key=lambda s: (distance(s), s.start_dt, s.staff_id),
    )[:_cap(limit)]

    ranked = []
    for index, slot in enumerate(ordered):
        diff_days = (slot.date - target_date).days
        ranked.append(RankedSlot(
            slot=slot,
            rank=index + 1,
            distance_minutes=distance(slot),
            proximity_label=_date_label(diff_days, language),
            starred=index < MAX_STAR_SLOTS and abs(diff_days) <= STAR_DATE_RANGE_DAYS,
        ))

    logger.debug(f"Ranked {len(ranked)} slots by date proximity to {target_date}")
    return ranked


def suggest_alternatives(
        slots: Iterable[SlotCandidate],
        target_date: date,
        target_time: Optional[time],
        language: Language = DEFAULT_LANGUAGE,
        limit: Optional[int] = None,
) -> List[RankedSlot]:
    """
    Same day at a different time when the requested day has room,
    otherwise the nearest other days.
    """
    slots = list(slots)
    same_day = [s for s in slots if s.date == target_date]

    if same_day and target_time is not None:
        return rank_by_time_proximity(same_day, target_time, language, limit=limit)
    if same_day:
        return rank_by_date_proximity(same_day, target_date, language, limit=limit)

    other_days = [s for s in slots if s.date != target_date]
    if not other_days:
        logger.info(f"No alternatives around {target_date}")
        return []
    return rank_by_date_proximity(other_days, target_date, language, target_time=target_time, limit=limit)
