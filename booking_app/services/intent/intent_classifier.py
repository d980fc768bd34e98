# booking_app/services/intent/intent_classifier.py
"""
Intent classification with weighted keyword and regex scoring.

No network call is made: classification is deterministic and cheap. When the
full classifier fails, the keyword-only classifier answers instead and the
result is marked as degraded.
"""
import re
import logging
from datetime import date
from typing import Dict, Iterable, Optional

from booking_app.config.settings import get_settings
from booking_app.core.errors import ValidationError
from booking_app.schemas.booking_intent import IntentClassification, IntentType
from booking_app.schemas.language import Language, normalize_language
from booking_app.services.intent.entity_extractor import extract_entities
from booking_app.services.intent.intent_patterns import IntentPattern, patterns_for
from booking_app.services.intent.language_detector import detect_language

logger = logging.getLogger(__name__)
settings = get_settings()

STRONG_KEYWORD_SCORE = 0.4
WEAK_KEYWORD_SCORE = 0.2
STRONG_PATTERN_SCORE = 0.45
WEAK_PATTERN_SCORE = 0.25
MULTI_MATCH_BONUS = 0.15

# Below this nothing matched meaningfully
UNKNOWN_FLOOR = 0.2


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text.strip().lower())


def contains_keyword(text: str, keyword: str) -> bool:
    """Multi-word keywords match as substrings, single words on word boundaries"""
    keyword = keyword.lower()
    if " " in keyword:
        return keyword in text
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def score_pattern(text: str, pattern: IntentPattern, use_regex: bool = True) -> float:
    """Weighted score of one intent table entry, capped at 1.0"""
    score = 0.0
    matches = 0

    for keyword in pattern.keywords:
        if contains_keyword(text, keyword):
            matches += 1
            score += STRONG_KEYWORD_SCORE if pattern.strong else WEAK_KEYWORD_SCORE

    if use_regex:
        for regex in pattern.patterns:
            if regex.search(text):
                matches += 1
                score += STRONG_PATTERN_SCORE if pattern.strong else WEAK_PATTERN_SCORE

    if matches == 0:
        return 0.0

    score = min(score * pattern.weight, 1.0)
    if matches >= 2:
        score = min(score + MULTI_MATCH_BONUS, 1.0)
    if matches >= 3:
        score = min(score + MULTI_MATCH_BONUS, 1.0)
    return score


def resolve_conflicts(scores: Dict[IntentType, float]) -> Dict[IntentType, float]:
    """Specific intents take precedence over a generic booking request"""
    new_booking = scores.get(IntentType.NEW_BOOKING, 0.0)
    if scores.get(IntentType.CANCEL_BOOKING, 0.0) > 0.3 or scores.get(IntentType.MODIFY_BOOKING, 0.0) > 0.3:
        new_booking = min(new_booking, 0.3)
    if scores.get(IntentType.AVAILABILITY_QUESTION, 0.0) > 0.5:
        new_booking = min(new_booking, 0.4)
    scores[IntentType.NEW_BOOKING] = new_booking
    return scores


def pick_intent(scores: Dict[IntentType, float]) -> IntentClassification:
    """Highest scoring intent; ties resolve in table order"""
    best_type, best_score = IntentType.UNKNOWN, 0.0
    for intent_type, score in scores.items():
        if score > best_score:
            best_type, best_score = intent_type, score
    if best_score < UNKNOWN_FLOOR:
        return IntentClassification(intent_type=IntentType.UNKNOWN, confidence=best_score)
    return IntentClassification(intent_type=best_type, confidence=round(best_score, 4))


class KeywordIntentClassifier:
    """Degraded-mode classifier: keyword tables only, no regex and no entities"""

    def classify(self, text: str, language: Language) -> IntentClassification:
        normalized = normalize_text(text or "")
        scores = {
            intent_type: score_pattern(normalized, pattern, use_regex=False)
            for intent_type, pattern in patterns_for(language).items()
        }
        result = pick_intent(resolve_conflicts(scores))
        return result.model_copy(update={"language": language, "degraded": True})


class IntentClassifier:
    """Full classifier: keywords, regex patterns and entity extraction"""

    def __init__(self, fallback: Optional[KeywordIntentClassifier] = None):
        self.fallback = fallback or KeywordIntentClassifier()

    def _classify(
            self,
            text: str,
            language: Language,
            today: date,
            service_names: Iterable[str],
            staff_names: Iterable[str],
    ) -> IntentClassification:
        normalized = normalize_text(text)
        scores = {
            intent_type: score_pattern(normalized, pattern)
            for intent_type, pattern in patterns_for(language).items()
        }
        result = pick_intent(resolve_conflicts(scores))
        entities = extract_entities(text, language, today, service_names, staff_names)
        return result.model_copy(update={"language": language, "entities": entities})

    def classify(
            self,
            text: str,
            language: Optional[str] = None,
            today: Optional[date] = None,
            service_names: Iterable[str] = (),
            staff_names: Iterable[str] = (),
    ) -> IntentClassification:
        """
        Classify one message.

        `language` is a loose tag from the transport; when absent it is
        detected from the text. Raises ValidationError only for an explicit
        but impossible date or time; any other failure degrades to the
        keyword-only classifier.
        """
        lang = normalize_language(language) if language else detect_language(text)
        if not text or not text.strip():
            logger.warning("Empty text provided for intent classification")
            return IntentClassification(intent_type=IntentType.UNKNOWN, confidence=0.0, language=lang)

        try:
            result = self._classify(text, lang, today or date.today(), service_names, staff_names)
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Intent classification failed, using keyword-only fallback (degraded mode): {e}")
            result = self.fallback.classify(text, lang)

        logger.info(
            f"Intent classified: {result.intent_type.value} "
            f"(confidence: {result.confidence:.2f}, language: {lang.value}, degraded: {result.degraded})"
        )
        return result


def route_intent(classification: IntentClassification, threshold: Optional[float] = None) -> IntentType:
    """
    Intent type to act on.

    At or above the confidence threshold the classified type is used;
    below it every message goes to conversational handling.
    """
    threshold = settings.INTENT_CONFIDENCE_THRESHOLD if threshold is None else threshold
    if classification.confidence >= threshold:
        return classification.intent_type
    if classification.intent_type != IntentType.CONVERSATIONAL:
        logger.info(
            f"Low confidence {classification.confidence:.2f} < {threshold} for "
            f"{classification.intent_type.value}, routing to conversational"
        )
    return IntentType.CONVERSATIONAL
