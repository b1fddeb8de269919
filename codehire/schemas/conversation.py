"""Conversation Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ConversationStart(BaseModel):
    user_id: int


class ConversationOut(BaseModel):
    id: int
    participant_ids: List[int] = []
    created_at: Optional[datetime] = None


class MessageCreate(BaseModel):
    content: str


class MessageOut(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
