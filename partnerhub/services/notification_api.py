# partnerhub/services/notification_api.py
import math
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from partnerhub.crud import notification as crud_notification
from partnerhub.models.partner import Partner
from partnerhub.schemas.notification import PaginatedNotifications

def get_paginated(db: Session, partner: Partner, page: int, size: int, unread_only: bool):
    """Собирает пагинированный ответ для уведомлений."""
    skip = (page - 1) * size

    notifications = crud_notification.get_notifications(
        db, partner_id=partner.id, skip=skip, limit=size, unread_only=unread_only
    )
    total_items = crud_notification.count_notifications(db, partner_id=partner.id, unread_only=unread_only)
    total_pages = math.ceil(total_items / size) if total_items > 0 else 1

    return PaginatedNotifications(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        size=size,
        items=notifications
    )

def mark_as_read(db: Session, partner: Partner, notification_id: int):
    notification = crud_notification.mark_notification_as_read(db, partner_id=partner.id, notification_id=notification_id)
    if not notification:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return notification

def mark_all_as_read(db: Session, partner: Partner):
    crud_notification.mark_all_notifications_as_read(db, partner_id=partner.id)
