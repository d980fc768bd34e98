# booking_app/schemas/language.py
from __future__ import annotations
import logging
from enum import Enum
from typing import Optional

from booking_app.config.settings import get_settings

logger = logging.getLogger(__name__)


class Language(str, Enum):
    """Closed set of supported conversation languages"""
    EN = "en"
    RU = "ru"
    ES = "es"
    PT = "pt"
    HE = "he"


def configured_default_language() -> Language:
    """DEFAULT_LANGUAGE setting as a Language; English when unset or unsupported"""
    value = (get_settings().DEFAULT_LANGUAGE or "").strip().lower()
    try:
        return Language(value)
    except ValueError:
        logger.warning(f"Unsupported DEFAULT_LANGUAGE {value!r}, using English")
        return Language.EN


DEFAULT_LANGUAGE = configured_default_language()


def normalize_language(value: Optional[str], default: Language = DEFAULT_LANGUAGE) -> Language:
    """Map a loose language tag ("en-US", "RU", None, "xx") onto a supported Language"""
    if isinstance(value, Language):
        return value
    if not value:
        return default
    primary = str(value).strip().lower().replace("_", "-").split("-")[0]
    try:
        return Language(primary)
    except ValueError:
        return default
