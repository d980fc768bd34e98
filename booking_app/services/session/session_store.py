# booking_app/services/session/session_store.py
"""
Conversation session store.

One live session per (facility, customer), kept in a TTL key-value backend.
The store checks `expires_at` itself on every read, so an expired record is
never returned even while the backend still holds it. Records written by an
older schema are upgraded with defaults on read.
"""
import json
import logging
import math
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Callable, Dict, Optional, Tuple

import redis.asyncio as redis
from pydantic import ValidationError as SchemaValidationError

from booking_app.config.redis import RedisKeys, get_redis
from booking_app.config.settings import get_settings
from booking_app.core.errors import SessionExpired
from booking_app.schemas.booking_intent import BookingIntent
from booking_app.schemas.language import normalize_language
from booking_app.schemas.session import ConversationSession, SESSION_SCHEMA_VERSION

logger = logging.getLogger(__name__)
settings = get_settings()

Clock = Callable[[], datetime]


class RedisSessionBackend:
    """Sessions as JSON strings under `SET key value EX ttl`"""

    def __init__(self, client: Optional[redis.Redis] = None):
        # Without an explicit client each call borrows one from the shared pool
        self._client = client

    async def _acquire(self) -> Tuple[redis.Redis, bool]:
        if self._client is not None:
            return self._client, False
        return await get_redis(), True

    async def get(self, key: str) -> Optional[str]:
        client, owned = await self._acquire()
        try:
            return await client.get(key)
        finally:
            if owned:
                await client.aclose()

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        client, owned = await self._acquire()
        try:
            await client.set(key, value, ex=ttl_seconds)
        finally:
            if owned:
                await client.aclose()

    async def delete(self, key: str) -> None:
        client, owned = await self._acquire()
        try:
            await client.delete(key)
        finally:
            if owned:
                await client.aclose()


class InMemorySessionBackend:
    """Process-local backend for development and tests"""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or datetime.now
        self._data: Dict[str, Tuple[str, datetime]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._data[key] = (value, self._clock() + timedelta(seconds=ttl_seconds))

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self):
        return len(self._data)


def upgrade_session_payload(data: dict) -> dict:
    """Fill fields that older schema versions did not write"""
    version = data.get("schema_version", 1)
    if version >= SESSION_SCHEMA_VERSION:
        return data

    upgraded = dict(data)
    intent_language = (upgraded.get("original_intent") or {}).get("language")
    upgraded["language"] = normalize_language(upgraded.get("language") or intent_language).value
    upgraded.setdefault("version", 1)
    upgraded.setdefault("candidate_slots", [])
    upgraded["schema_version"] = SESSION_SCHEMA_VERSION

    logger.warning(
        f"Upgraded session {upgraded.get('session_id')} from schema v{version} "
        f"to v{SESSION_SCHEMA_VERSION} (language={upgraded['language']})"
    )
    return upgraded


class ConversationSessionStore:
    """Async put/get/delete of ConversationSession records"""

    def __init__(self, backend, ttl: Optional[timedelta] = None, clock: Optional[Clock] = None):
        self.backend = backend
        self.ttl = ttl or timedelta(minutes=settings.SESSION_TTL_MINUTES)
        self.clock = clock or datetime.now

    @staticmethod
    def session_key(customer_id: str, facility_id: str) -> str:
        return RedisKeys.BOOKING_SESSION.format(facility_id=facility_id, customer_id=customer_id)

    def now(self) -> datetime:
        return self.clock()

    def start_session(
            self,
            intent: BookingIntent,
            customer_id: str,
            facility_id: str,
            service_id: Optional[str] = None,
            staff_id: Optional[str] = None,
    ) -> ConversationSession:
        """New unsaved session expiring one TTL from now"""
        return ConversationSession.start(
            customer_id=customer_id,
            facility_id=facility_id,
            intent=intent,
            now=self.now(),
            ttl=self.ttl,
            service_id=service_id,
            staff_id=staff_id,
        )

    async def put(self, key: str, session: ConversationSession, ttl: Optional[timedelta] = None) -> None:
        """
        Store `session`, replacing any record under `key`.

        The backend TTL never outlives `session.expires_at`. Writing a session
        that has already expired raises SessionExpired.
        """
        now = self.now()
        if session.is_expired(now):
            raise SessionExpired(f"Session {session.session_id} expired at {session.expires_at}")

        remaining = (session.expires_at - now).total_seconds()
        if ttl is not None:
            remaining = min(remaining, ttl.total_seconds())
        ttl_seconds = max(1, math.ceil(remaining))

        await self.backend.set(key, session.model_dump_json(), ttl_seconds)
        logger.debug(f"Stored session {session.session_id} v{session.version} under {key} (ttl {ttl_seconds}s)")

    async def get(self, key: str) -> Optional[ConversationSession]:
        """Live session under `key`, or None when missing, expired or unreadable"""
        raw = await self.backend.get(key)
        if raw is None:
            return None

        try:
            data = upgrade_session_payload(json.loads(raw))
            session = ConversationSession.model_validate(data)
        except (json.JSONDecodeError, SchemaValidationError, TypeError, AttributeError) as e:
            logger.error(f"Discarding unreadable session under {key}: {e}")
            await self.backend.delete(key)
            return None

        if session.is_expired(self.now()):
            logger.info(f"Session {session.session_id} under {key} expired at {session.expires_at}")
            await self.backend.delete(key)
            return None

        return session

    async def require(self, key: str) -> ConversationSession:
        """Like get(), but a missing session raises SessionExpired"""
        session = await self.get(key)
        if session is None:
            raise SessionExpired(f"No live session under {key}", key=key)
        return session

    async def delete(self, key: str) -> None:
        await self.backend.delete(key)
        logger.debug(f"Deleted session under {key}")


@lru_cache()
def get_session_store() -> ConversationSessionStore:
    """Process-wide store for the configured backend"""
    if settings.SESSION_BACKEND == "memory":
        logger.info("Using in-memory session backend")
        return ConversationSessionStore(InMemorySessionBackend())
    return ConversationSessionStore(RedisSessionBackend())
