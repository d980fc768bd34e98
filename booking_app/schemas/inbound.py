# booking_app/schemas/inbound.py
from __future__ import annotations
from pydantic import BaseModel, Field, model_validator
from typing import Optional


class InboundEvent(BaseModel):
    """Inbound chat event as delivered by the transport layer"""
    customer_id: str = Field(..., min_length=1, description="Channel customer identifier")
    facility_id: str = Field(..., min_length=1, description="Facility the customer is talking to")
    text: Optional[str] = Field(None, description="Free-form message text")
    interactive_selection_id: Optional[str] = Field(None, description="Id of the button/list row tapped")
    detected_language: Optional[str] = Field(None, description="Language tag from the transport, if any")

    @model_validator(mode="after")
    def require_payload(self) -> "InboundEvent":
        if not (self.text and self.text.strip()) and not self.interactive_selection_id:
            raise ValueError("Either text or interactive_selection_id is required")
        return self
