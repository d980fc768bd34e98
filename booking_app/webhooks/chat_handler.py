# booking_app/webhooks/chat_handler.py
"""Chat transport webhook: inbound events in, outbound cards/text out"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from booking_app.api.dependencies import get_booking_flow
from booking_app.config.database import get_db
from booking_app.schemas.choice_card import OutboundResponse
from booking_app.schemas.inbound import InboundEvent
from booking_app.services.conversation.booking_flow_service import BookingFlowService, resolve_outcome
from booking_app.tasks.conversation_tasks import process_inbound_message

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/incoming", response_model=OutboundResponse)
async def handle_incoming_message(
        event: InboundEvent,
        request: Request,
        db: Session = Depends(get_db),
        flow: BookingFlowService = Depends(get_booking_flow),
):
    """Process an inbound chat event and return the reply for the transport to render"""
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        f"Inbound event from {event.customer_id} for facility {event.facility_id} "
        f"(button: {bool(event.interactive_selection_id)}) [{correlation_id}]"
    )

    response = await flow.handle_event(db, event)

    kind, items = resolve_outcome(response)
    logger.info(f"Replying with {kind}{f' ({items} items)' if items is not None else ''} [{correlation_id}]")
    return response


@router.post("/queue", status_code=202)
async def queue_incoming_message(event: InboundEvent, request: Request):
    """Queue an inbound chat event; the worker delivers the reply"""
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    try:
        task = process_inbound_message.delay(
            event=event.model_dump(),
            correlation_id=correlation_id
        )
    except Exception as e:
        logger.error(f"Error queueing inbound event: {str(e)}")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    logger.info(f"Queued inbound event from {event.customer_id} as task {task.id}")
    return {"status": "queued", "task_id": task.id}
