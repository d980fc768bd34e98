# booking_app/webhooks/router.py
from fastapi import APIRouter

webhook_router = APIRouter()


# Import handlers inside a function to avoid circular imports
def register_handlers():
    from booking_app.webhooks import chat_handler
    webhook_router.include_router(chat_handler.router, prefix="/chat")


register_handlers()


@webhook_router.get("/")
async def webhook_info():
    return {
        "endpoints": {
            "chat_messages": "/webhooks/chat/incoming",
            "chat_messages_queued": "/webhooks/chat/queue",
        },
        "note": "All endpoints accept POST requests with an InboundEvent JSON body"
    }
