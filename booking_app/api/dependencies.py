# booking_app/api/dependencies.py
"""FastAPI dependencies for the booking core"""
from functools import lru_cache

from booking_app.services.conversation.booking_flow_service import BookingFlowService
from booking_app.services.session.session_store import get_session_store


@lru_cache()
def get_booking_flow() -> BookingFlowService:
    """Process-wide flow bound to the configured session store"""
    return BookingFlowService(get_session_store())
