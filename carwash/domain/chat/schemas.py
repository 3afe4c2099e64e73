"""Chat schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class MessageCreate(BaseModel):
    receiverId: str = Field(min_length=1)
    content: str = Field(max_length=4000)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Message content cannot be empty")
        return v


class MessageResponse(BaseModel):
    id: str
    senderId: str
    receiverId: str
    content: str
    isRead: bool
    createdAt: Optional[datetime] = None


class Counterpart(BaseModel):
    id: str
    name: str
    role: str


class ConversationResponse(BaseModel):
    user: Counterpart
    lastMessage: MessageResponse
    unreadCount: int


def message_response(message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        senderId=message.sender_id,
        receiverId=message.receiver_id,
        content=message.content,
        isRead=message.is_read,
        createdAt=message.created_at,
    )


def message_event(message) -> dict:
    """Live ``new-message`` event as sent over the socket"""
    return {"type": "new-message", "data": message_response(message).model_dump(mode="json")}
