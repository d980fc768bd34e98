"""Conversation session store: TTL enforcement, replacement and schema upgrades."""

import json
from datetime import datetime, time
from unittest.mock import AsyncMock

import pytest

from booking_app.core.errors import SessionExpired
from booking_app.schemas.booking_intent import BookingIntent, IntentType
from booking_app.schemas.language import Language
from booking_app.schemas.session import SESSION_SCHEMA_VERSION
from booking_app.schemas.slots import SlotCandidate
from booking_app.services.session.session_store import (
    ConversationSessionStore,
    InMemorySessionBackend,
    RedisSessionBackend,
    upgrade_session_payload,
)
from tests.conftest import WEDNESDAY

KEY = ConversationSessionStore.session_key("customer-1", "facility-1")


def make_intent(language=Language.EN):
    return BookingIntent(
        raw_text="Book a haircut on Wednesday",
        language=language,
        intent_type=IntentType.NEW_BOOKING,
        confidence=0.9,
        desired_date=WEDNESDAY,
    )


def make_slot(hour=10):
    return SlotCandidate(
        staff_id="staff-1",
        service_id="svc-1",
        date=WEDNESDAY,
        start_time=time(hour, 0),
        end_time=time(hour + 1, 0),
    )


def new_session(store, language=Language.EN):
    return store.start_session(make_intent(language), customer_id="customer-1", facility_id="facility-1")


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_put_and_get(self, session_store):
        session = new_session(session_store).with_candidates([make_slot(10), make_slot(11)])
        await session_store.put(KEY, session)

        stored = await session_store.get(KEY)
        assert stored.session_id == session.session_id
        assert stored.candidate_slots == (make_slot(10), make_slot(11))
        assert stored.version == 2

    @pytest.mark.asyncio
    async def test_missing_session(self, session_store):
        assert await session_store.get(KEY) is None
        with pytest.raises(SessionExpired):
            await session_store.require(KEY)

    @pytest.mark.asyncio
    async def test_expires_after_ttl(self, session_store, clock):
        await session_store.put(KEY, new_session(session_store))

        clock.advance(minutes=29)
        assert await session_store.get(KEY) is not None

        clock.advance(minutes=2)
        assert await session_store.get(KEY) is None
        with pytest.raises(SessionExpired):
            await session_store.require(KEY)

    @pytest.mark.asyncio
    async def test_store_checks_expiry_itself(self, clock):
        # Backend that never evicts
        backend = InMemorySessionBackend(clock=lambda: datetime(2000, 1, 1))
        store = ConversationSessionStore(backend, clock=clock)
        await store.put(KEY, new_session(store))

        clock.advance(minutes=31)
        assert await store.get(KEY) is None
        assert len(backend) == 0

    @pytest.mark.asyncio
    async def test_selection_does_not_extend_expiry(self, session_store, clock):
        session = new_session(session_store)
        await session_store.put(KEY, session)

        clock.advance(minutes=20)
        await session_store.put(KEY, session.with_selected(make_slot()))

        clock.advance(minutes=11)
        assert await session_store.get(KEY) is None

    @pytest.mark.asyncio
    async def test_put_expired_session_rejected(self, session_store, clock):
        session = new_session(session_store)
        clock.advance(minutes=30)
        with pytest.raises(SessionExpired):
            await session_store.put(KEY, session)

    @pytest.mark.asyncio
    async def test_new_session_replaces_old(self, session_store):
        first = new_session(session_store)
        second = new_session(session_store, Language.RU)
        await session_store.put(KEY, first)
        await session_store.put(KEY, second)

        stored = await session_store.get(KEY)
        assert stored.session_id == second.session_id
        assert stored.language == Language.RU

    @pytest.mark.asyncio
    async def test_delete(self, session_store):
        await session_store.put(KEY, new_session(session_store))
        await session_store.delete(KEY)
        assert await session_store.get(KEY) is None

    @pytest.mark.asyncio
    async def test_unreadable_record_discarded(self, session_store):
        await session_store.backend.set(KEY, "{not json", 60)
        assert await session_store.get(KEY) is None
        assert len(session_store.backend) == 0

    def test_records_are_immutable(self, session_store):
        session = new_session(session_store)
        updated = session.with_selected(make_slot())
        assert session.selected_slot is None
        assert updated.version == session.version + 1


class TestSchemaUpgrade:
    def _legacy_payload(self, session):
        data = json.loads(session.model_dump_json())
        for field in ("language", "version", "candidate_slots"):
            data.pop(field)
        data["schema_version"] = 1
        return data

    def test_defaults_filled(self, session_store):
        data = self._legacy_payload(new_session(session_store, Language.HE))
        upgraded = upgrade_session_payload(data)
        assert upgraded["language"] == "he"
        assert upgraded["version"] == 1
        assert upgraded["candidate_slots"] == []
        assert upgraded["schema_version"] == SESSION_SCHEMA_VERSION

    def test_current_payload_untouched(self, session_store):
        data = json.loads(new_session(session_store).model_dump_json())
        assert upgrade_session_payload(data) is data

    @pytest.mark.asyncio
    async def test_legacy_record_readable(self, session_store):
        data = self._legacy_payload(new_session(session_store, Language.RU))
        await session_store.backend.set(KEY, json.dumps(data), 600)

        stored = await session_store.get(KEY)
        assert stored.language == Language.RU
        assert stored.candidate_slots == ()


class TestRedisBackend:
    @pytest.mark.asyncio
    async def test_ttl_matches_remaining_lifetime(self, clock):
        client = AsyncMock()
        store = ConversationSessionStore(RedisSessionBackend(client), clock=clock)
        session = new_session(store)

        clock.advance(minutes=10)
        await store.put(KEY, session)

        client.set.assert_awaited_once()
        args, kwargs = client.set.call_args
        assert args[0] == KEY
        assert kwargs["ex"] == 20 * 60

    @pytest.mark.asyncio
    async def test_get_round_trip(self, clock):
        client = AsyncMock()
        store = ConversationSessionStore(RedisSessionBackend(client), clock=clock)
        session = new_session(store)
        client.get.return_value = session.model_dump_json()

        stored = await store.get(KEY)
        assert stored.session_id == session.session_id
        client.get.assert_awaited_once_with(KEY)

    @pytest.mark.asyncio
    async def test_explicit_client_not_closed(self, clock):
        client = AsyncMock()
        store = ConversationSessionStore(RedisSessionBackend(client), clock=clock)
        await store.delete(KEY)
        client.delete.assert_awaited_once_with(KEY)
        client.aclose.assert_not_called()
