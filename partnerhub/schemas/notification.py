# partnerhub/schemas/notification.py
from pydantic import BaseModel
from datetime import datetime
from typing import List

class Notification(BaseModel):
    id: int
    type: str
    title: str
    message: str | None
    created_at: datetime
    is_read: bool
    related_entity_id: str | None # ID назначения проекта или заявки на вывод

    class Config:
        from_attributes = True


class PaginatedNotifications(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    size: int
    items: List[Notification]


class ChangeEvent(BaseModel):
    id: int
    table_name: str
    action: str
    row_id: int
    partner_id: int | None
    created_at: datetime

    class Config:
        from_attributes = True


class ChangeFeed(BaseModel):
    items: List[ChangeEvent]
    # Курсор для следующего запроса (?after_id=)
    next_after_id: int
