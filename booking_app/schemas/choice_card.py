# booking_app/schemas/choice_card.py
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class ChoiceItem(BaseModel):
    """One selectable option; `id` comes back as the interactive selection id"""
    id: str = Field(..., max_length=256)
    label: str
    description: Optional[str] = None


class ChoiceCard(BaseModel):
    """Abstract set of selectable options rendered by the transport layer"""
    title: str
    body: Optional[str] = None
    items: List[ChoiceItem] = Field(default_factory=list)
    footer: Optional[str] = None


class TextMessage(BaseModel):
    text: str


class OutboundResponse(BaseModel):
    """What the core hands back to the transport layer"""
    kind: Literal["choice_card", "text"]
    card: Optional[ChoiceCard] = None
    text: Optional[str] = None

    @classmethod
    def of_card(cls, card: ChoiceCard) -> "OutboundResponse":
        return cls(kind="choice_card", card=card)

    @classmethod
    def of_text(cls, message: TextMessage) -> "OutboundResponse":
        return cls(kind="text", text=message.text)
