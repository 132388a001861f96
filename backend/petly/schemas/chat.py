from datetime import datetime
from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    conversation_id: UUID | None = None
    dog_id: UUID | None = None


class ChatMessageRead(BaseModel):
    id: UUID
    conversation_id: UUID
    role: str
    content: str
    tokens_used: int | None = None
    model_used: str | None = None
    feedback: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatResponse(BaseModel):
    conversation_id: UUID
    message: ChatMessageRead


class ConversationRead(BaseModel):
    id: UUID
    dog_id: UUID | None = None
    title: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationUpdate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class ConversationMessages(BaseModel):
    conversation: ConversationRead
    messages: List[ChatMessageRead]


class MessageFeedback(BaseModel):
    feedback: Literal["helpful", "not_helpful"]
