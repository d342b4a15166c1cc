# partnerhub/schemas/message.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=4000)


class Message(BaseModel):
    id: int
    sender_id: int
    receiver_id: Optional[int] = None
    content: str
    is_admin: bool
    is_broadcast: bool
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    unread: int
