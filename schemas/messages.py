from pydantic import BaseModel, validator
from typing import Optional

from models import Conversation, Message, Profile

class ConversationCreate(BaseModel):
    recipient_id: str

class MessageCreate(BaseModel):
    body: str

    @validator('body')
    def validate_body(cls, v):
        if not v.strip():
            raise ValueError('Message cannot be empty')
        if len(v) > 4000:
            raise ValueError('Message must be at most 4000 characters long')
        return v

class ConversationSummary(Conversation):
    other_user: Optional[Profile] = None
    last_message: Optional[Message] = None

class UnreadCount(BaseModel):
    count: int

class NotificationsReadResponse(BaseModel):
    updated: int
