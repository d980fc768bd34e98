"""Queued processing of inbound chat events"""
import asyncio
import logging

from pydantic import ValidationError as SchemaValidationError

from booking_app.config.celery_config import celery_app
from booking_app.config.database import get_db
from booking_app.config.redis import create_redis_client
from booking_app.config.settings import get_settings
from booking_app.schemas.inbound import InboundEvent
from booking_app.services.conversation.booking_flow_service import BookingFlowService, resolve_outcome
from booking_app.services.session.session_store import (
    ConversationSessionStore,
    RedisSessionBackend,
    get_session_store,
)

logger = logging.getLogger(__name__)
settings = get_settings()


async def _process_event(db, event: InboundEvent):
    """Run the flow inside this task's own event loop"""
    if settings.SESSION_BACKEND != "redis":
        return await BookingFlowService(get_session_store()).handle_event(db, event)

    # Pooled connections belong to the loop that opened them, so each run gets its own client
    client = create_redis_client()
    try:
        store = ConversationSessionStore(RedisSessionBackend(client))
        return await BookingFlowService(store).handle_event(db, event)
    finally:
        await client.aclose()


@celery_app.task(bind=True, max_retries=3)
def process_inbound_message(self, event: dict, correlation_id: str):
    """Process one inbound chat event and return the outbound response"""
    try:
        inbound = InboundEvent.model_validate(event)
    except SchemaValidationError as e:
        logger.error(f"Dropping invalid inbound event [{correlation_id}]: {e}")
        return {"status": "failed", "reason": "invalid_event"}

    try:
        logger.info(f"Processing event from {inbound.customer_id} for facility {inbound.facility_id} [{correlation_id}]")

        db = next(get_db())
        try:
            response = asyncio.run(_process_event(db, inbound))
        finally:
            db.close()

        kind, items = resolve_outcome(response)
        logger.info(f"Processed event [{correlation_id}]: {kind} ({items} items)")
        return {"status": "processed", "response": response.model_dump()}

    except Exception as e:
        logger.error(f"Error processing inbound event [{correlation_id}]: {str(e)}")
        raise self.retry(exc=e, countdown=2 ** self.request.retries)
