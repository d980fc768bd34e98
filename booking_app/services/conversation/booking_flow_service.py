# ============================================================================
# booking_app/services/conversation/booking_flow_service.py
# ============================================================================
"""
Turn-based booking conversation.

inbound text -> intent -> availability -> session -> choice card
button tap   -> decode -> confirmation card | commit | alternatives

Every failure is answered with a localized message; internal detail is
only logged.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from booking_app.config.settings import get_settings
from booking_app.core.errors import (
    AvailabilityConflict,
    BookingError,
    ErrorKind,
    ServiceNotFound,
    SessionExpired,
    ValidationError,
)
from booking_app.models.facility import Facility, Staff
from booking_app.models.service import Service
from booking_app.schemas.booking_intent import BOOKING_INTENTS, BookingIntent, IntentType
from booking_app.schemas.choice_card import OutboundResponse
from booking_app.schemas.inbound import InboundEvent
from booking_app.schemas.language import Language
from booking_app.schemas.session import ConversationSession
from booking_app.schemas.slots import SlotCandidate
from booking_app.services.availability.alternative_suggester import suggest_alternatives
from booking_app.services.availability.availability_service import AvailabilityService
from booking_app.services.booking.booking_commit_service import BookingCommitService
from booking_app.services.cards import button_codec
from booking_app.services.cards.choice_card_builder import (
    build_booking_confirmed,
    build_confirmation_card,
    build_error_card,
    build_service_card,
    build_slot_card,
    build_text,
)
from booking_app.services.cards.translations import format_clock, format_day, get_text
from booking_app.services.facility.facility_service import FacilityService
from booking_app.services.intent.intent_classifier import IntentClassifier, route_intent
from booking_app.services.intent.language_detector import detect_language
from booking_app.services.session.session_store import ConversationSessionStore

logger = logging.getLogger(__name__)
settings = get_settings()

# When several staff members fail an exact request, report the most actionable reason
REASON_PRIORITY = (
    ErrorKind.AVAILABILITY_CONFLICT,
    ErrorKind.DURATION_EXCEEDS_WINDOW,
    ErrorKind.OUT_OF_HOURS,
    ErrorKind.STAFF_UNAVAILABLE,
)


def _card(card) -> OutboundResponse:
    return OutboundResponse.of_card(card)


def _text(message) -> OutboundResponse:
    return OutboundResponse.of_text(message)


class BookingFlowService:
    """Orchestrates one inbound event into one outbound response"""

    def __init__(
            self,
            session_store: ConversationSessionStore,
            classifier: Optional[IntentClassifier] = None,
            clock: Optional[Callable[[], datetime]] = None,
    ):
        self.sessions = session_store
        self.classifier = classifier or IntentClassifier()
        self.clock = clock or session_store.clock

    async def handle_event(self, db: Session, event: InboundEvent) -> OutboundResponse:
        """Process one inbound event; never raises"""
        language = detect_language(event.text, hint=event.detected_language)
        key = self.sessions.session_key(event.customer_id, event.facility_id)

        try:
            if event.interactive_selection_id:
                return await self._handle_selection(db, event, key, language)
            return await self._handle_text(db, event, key, language)
        except SessionExpired as e:
            logger.info(f"Session expired for {key}: {e}")
            return _text(build_error_card(ErrorKind.SESSION_EXPIRED, e.details.get("language", language)))
        except BookingError as e:
            db.rollback()
            logger.warning(f"Booking flow error ({e.kind.value}) for {key}: {e}")
            return _text(build_error_card(e.kind, e.details.get("language", language)))
        except Exception as e:
            db.rollback()
            logger.exception(f"Unhandled error processing event for {key}: {e}")
            return _text(build_error_card(ErrorKind.GENERIC, language))

    # ------------------------------------------------------------------
    # Free text
    # ------------------------------------------------------------------

    async def _handle_text(self, db: Session, event: InboundEvent, key: str, language: Language) -> OutboundResponse:
        facility = self._require_facility(db, event.facility_id)
        services = FacilityService.list_services(db, facility.id)
        staff = FacilityService.list_active_staff(db, facility.id)

        try:
            classification = self.classifier.classify(
                event.text,
                language.value,
                today=self.clock().date(),
                service_names=[s.name for s in services],
                staff_names=[m.name for m in staff],
            )
        except ValidationError as e:
            e.details["language"] = language
            raise

        intent_type = route_intent(classification)
        intent = BookingIntent.from_classification(event.text, classification, intent_type)
        language = intent.language

        if intent_type in BOOKING_INTENTS:
            return await self._start_booking(db, facility, services, intent, event, key)
        if intent_type == IntentType.CANCEL_BOOKING:
            return _text(build_text("CANCEL_INFO", language))
        if intent_type == IntentType.MODIFY_BOOKING:
            return _text(build_text("MODIFY_INFO", language))
        return _text(build_text("CONVERSATIONAL", language))

    async def _start_booking(
            self,
            db: Session,
            facility: Facility,
            services: List[Service],
            intent: BookingIntent,
            event: InboundEvent,
            key: str,
    ) -> OutboundResponse:
        language = intent.language

        service = None
        if intent.service_name:
            service = FacilityService.find_service_by_name(db, facility.id, intent.service_name)
        if service is None and len(services) == 1:
            service = services[0]

        staff = None
        if intent.staff_name_preference:
            staff = FacilityService.find_staff_by_name(db, facility.id, intent.staff_name_preference)
            if staff is not None and service is not None and not staff.performs(service.category):
                logger.info(f"Staff {staff.id} does not perform {service.category}, ignoring preference")
                staff = None

        existing = await self.sessions.get(key)
        if existing is not None:
            logger.info(f"Replacing live session {existing.session_id} for {key} with a new request")

        session = self.sessions.start_session(
            intent,
            customer_id=event.customer_id,
            facility_id=facility.id,
            service_id=service.id if service else None,
            staff_id=staff.id if staff else None,
        )

        if service is None:
            if not services:
                logger.warning(f"Facility {facility.id} has no active services")
                return _text(build_error_card(ErrorKind.NO_AVAILABILITY, language))
            await self.sessions.put(key, session)
            return _card(build_service_card(services, language))

        return await self._offer_slots(db, facility, service, staff, session, key)

    # ------------------------------------------------------------------
    # Slot offering
    # ------------------------------------------------------------------

    async def _offer_slots(
            self,
            db: Session,
            facility: Facility,
            service: Service,
            staff: Optional[Staff],
            session: ConversationSession,
            key: str,
    ) -> OutboundResponse:
        intent = session.original_intent
        language = session.language
        now = self.clock()
        day = intent.desired_date or now.date()

        if day < now.date():
            await self.sessions.delete(key)
            raise ValidationError(f"Requested date {day} is in the past", language=language)

        if intent.desired_time is None:
            return await self._offer_alternatives(db, facility, service, staff, session, key, day, None, None)

        candidates = [staff] if staff is not None else FacilityService.list_staff_for_service(db, service)
        reasons = []
        for member in candidates:
            reason, slot = AvailabilityService.check_requested_slot(
                db, facility, member, service, day, intent.desired_time, not_before=now
            )
            if slot is not None:
                session = session.with_candidates([slot]).with_selected(slot)
                await self.sessions.put(key, session)
                logger.info(f"Requested slot {slot.start_dt} with staff {member.id} is available")
                return _card(build_confirmation_card(slot, language))
            reasons.append(reason)

        reason = next((r for r in REASON_PRIORITY if r in reasons), ErrorKind.NO_AVAILABILITY)
        logger.info(f"Requested {day} {intent.desired_time} not bookable ({reason.value}), offering alternatives")

        # A named staff member who is off that day should not block other staff
        search_staff = None if reason == ErrorKind.STAFF_UNAVAILABLE else staff
        return await self._offer_alternatives(
            db, facility, service, search_staff, session, key, day, intent.desired_time, reason
        )

    def _lead_message(
            self,
            reason: Optional[ErrorKind],
            language: Language,
            day,
            target_time,
            staff: Optional[Staff],
            same_day: bool,
    ) -> Optional[str]:
        params = {
            "date": format_day(day, language),
            "time": format_clock(target_time) if target_time else "",
            "staff": staff.name if staff else "",
        }
        if reason is not None and reason != ErrorKind.NO_AVAILABILITY:
            return build_error_card(reason, language, **params).text
        if not same_day:
            return get_text("OTHER_DAY_OPTIONS", language, **params)
        if target_time is not None:
            return get_text("SAME_DAY_OPTIONS", language, **params)
        return None

    async def _offer_alternatives(
            self,
            db: Session,
            facility: Facility,
            service: Service,
            staff: Optional[Staff],
            session: ConversationSession,
            key: str,
            day,
            target_time,
            reason: Optional[ErrorKind],
    ) -> OutboundResponse:
        """Rank free slots around (day, target_time) and store them as the session's candidates"""
        language = session.language
        slots = AvailabilityService.find_slots_for_range(
            db,
            facility,
            service,
            day,
            settings.ALTERNATIVE_SEARCH_DAYS,
            staff=staff,
            not_before=self.clock(),
        )
        ranked = suggest_alternatives(slots, day, target_time, language)

        if not ranked:
            await self.sessions.delete(key)
            logger.info(f"No availability for service {service.id} from {day} for {key}")
            return _text(build_error_card(ErrorKind.NO_AVAILABILITY, language))

        same_day = ranked[0].slot.date == day
        lead = self._lead_message(
            reason, language, day, target_time, staff or self._session_staff(db, session), same_day
        )

        session = session.replace(service_id=service.id).with_candidates([r.slot for r in ranked])
        await self.sessions.put(key, session)
        return _card(build_slot_card(ranked, language, lead_message=lead))

    # ------------------------------------------------------------------
    # Button selections
    # ------------------------------------------------------------------

    async def _handle_selection(
            self,
            db: Session,
            event: InboundEvent,
            key: str,
            language: Language,
    ) -> OutboundResponse:
        decoded = button_codec.decode_button(event.interactive_selection_id)

        session = await self.sessions.get(key)
        if session is None:
            raise SessionExpired(f"Selection {event.interactive_selection_id} without a live session", language=language)

        if decoded.kind in (button_codec.KIND_SLOT, button_codec.KIND_CONFIRM):
            slot, reason = self._resolve_slot(db, session, decoded.slot)
            if slot is None:
                return await self._reoffer(db, session, key, decoded.slot, reason)
            if decoded.kind == button_codec.KIND_CONFIRM:
                return await self._confirm(db, session, key, slot)
            await self.sessions.put(key, session.with_selected(slot))
            return _card(build_confirmation_card(slot, session.language))

        if decoded.kind == button_codec.KIND_SERVICE:
            facility = self._require_facility(db, session.facility_id)
            service = self._require_service(db, session, decoded.service_id)
            staff = self._session_staff(db, session)
            return await self._offer_slots(db, facility, service, staff, session.replace(service_id=service.id), key)

        return await self._handle_action(db, session, key, decoded.action)

    async def _handle_action(self, db: Session, session: ConversationSession, key: str, action: str) -> OutboundResponse:
        if action == button_codec.ACTION_CANCEL:
            await self.sessions.delete(key)
            logger.info(f"Customer cancelled selection {session.session_id}")
            return _text(build_text("SELECTION_CANCELLED", session.language))

        if session.service_id is None:
            raise ValidationError(f"Action {action} before a service was chosen", language=session.language)

        facility = self._require_facility(db, session.facility_id)
        service = self._require_service(db, session, session.service_id)
        staff = self._session_staff(db, session)

        if action == button_codec.ACTION_CHANGE_SLOT:
            anchor = session.selected_slot
            day = anchor.date if anchor else (session.original_intent.desired_date or self.clock().date())
            target_time = anchor.start_time if anchor else session.original_intent.desired_time
            return await self._offer_alternatives(db, facility, service, staff, session, key, day, target_time, None)

        # ACTION_MORE: the days after the latest candidate shown
        last = max((s.date for s in session.candidate_slots), default=self.clock().date())
        return await self._offer_alternatives(
            db, facility, service, staff, session, key, last + timedelta(days=1), None, None
        )

    async def _confirm(
            self,
            db: Session,
            session: ConversationSession,
            key: str,
            slot: SlotCandidate,
    ) -> OutboundResponse:
        loop = asyncio.get_running_loop()

        def _sync_commit():
            return BookingCommitService.commit(
                db,
                facility_id=session.facility_id,
                staff_id=slot.staff_id,
                service_id=slot.service_id,
                customer_id=session.customer_id,
                start_ts=slot.start_dt,
                end_ts=slot.end_dt,
            )

        # Run the blocking commit (lock waits, retry backoff) in executor
        result = await loop.run_in_executor(None, _sync_commit)

        if isinstance(result, AvailabilityConflict):
            logger.info(f"Slot {slot.start_dt} taken at commit time for {key}, re-offering alternatives")
            facility = self._require_facility(db, session.facility_id)
            service = self._require_service(db, session, slot.service_id)
            staff = self._session_staff(db, session)
            return await self._offer_alternatives(
                db, facility, service, staff, session, key, slot.date, slot.start_time,
                ErrorKind.AVAILABILITY_CONFLICT,
            )

        await self.sessions.delete(key)
        logger.info(f"Booking {result.booking_code} confirmed for customer {session.customer_id}")
        return _text(build_booking_confirmed(result, slot, session.language))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _resolve_slot(
            self,
            db: Session,
            session: ConversationSession,
            decoded: SlotCandidate,
    ) -> Tuple[Optional[SlotCandidate], Optional[ErrorKind]]:
        """
        The session's own copy of a tapped slot, or a freshly validated one.

        Button ids outside the session (stale cards, hand-typed ids) are checked
        against working hours and bookings again, and the interval is rebuilt
        from the service duration. Returns (slot, None) or (None, reason).
        """
        for known in (session.selected_slot, *session.candidate_slots):
            if known is not None and known == decoded and known.service_id == decoded.service_id:
                return known, None

        staff = FacilityService.get_staff(db, decoded.staff_id)
        if staff is None or staff.facility_id != session.facility_id:
            raise ValidationError(f"Slot staff {decoded.staff_id} not in facility", language=session.language)

        facility = self._require_facility(db, session.facility_id)
        service = self._require_service(db, session, decoded.service_id)
        if not staff.performs(service.category):
            logger.info(f"Staff {staff.id} does not perform {service.category}, rejecting slot")
            return None, ErrorKind.STAFF_UNAVAILABLE

        reason, slot = AvailabilityService.check_requested_slot(
            db, facility, staff, service, decoded.date, decoded.start_time, not_before=self.clock()
        )
        if slot is None:
            logger.info(f"Slot {decoded.start_dt} with staff {staff.id} outside the session is not bookable ({reason.value})")
        return slot, reason

    async def _reoffer(
            self,
            db: Session,
            session: ConversationSession,
            key: str,
            decoded: SlotCandidate,
            reason: ErrorKind,
    ) -> OutboundResponse:
        """Alternatives around a tapped slot that failed validation"""
        facility = self._require_facility(db, session.facility_id)
        service = self._require_service(db, session, decoded.service_id)
        staff = None if reason == ErrorKind.STAFF_UNAVAILABLE else self._session_staff(db, session)
        day = max(decoded.date, self.clock().date())
        return await self._offer_alternatives(
            db, facility, service, staff, session, key, day, decoded.start_time, reason
        )

    @staticmethod
    def _require_facility(db: Session, facility_id: str) -> Facility:
        facility = FacilityService.get_facility(db, facility_id)
        if facility is None:
            raise BookingError(f"Unknown or inactive facility {facility_id}")
        return facility

    @staticmethod
    def _require_service(db: Session, session: ConversationSession, service_id: str) -> Service:
        service = FacilityService.get_service(db, service_id)
        if service is None or service.facility_id != session.facility_id or not service.is_active:
            raise ServiceNotFound(f"Service {service_id} not available", language=session.language)
        return service

    @staticmethod
    def _session_staff(db: Session, session: ConversationSession) -> Optional[Staff]:
        if session.staff_id is None:
            return None
        staff = FacilityService.get_staff(db, session.staff_id)
        if staff is None or not staff.is_active:
            return None
        return staff


def resolve_outcome(response: OutboundResponse) -> Tuple[str, Optional[int]]:
    """(kind, item count) summary used in logs and task results"""
    if response.kind == "choice_card" and response.card is not None:
        return response.kind, len(response.card.items)
    return response.kind, None
