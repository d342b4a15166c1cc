# partnerhub/crud/notification.py
from sqlalchemy.orm import Session
from sqlalchemy import update
from partnerhub.models.notification import Notification
from typing import List

def create_notification(
    db: Session,
    partner_id: int,
    type: str,
    title: str,
    message: str | None = None,
    related_entity_id: str | None = None,
) -> Notification:
    """
    Создает уведомление и добавляет его в сессию.
    Требует внешнего вызова db.commit().
    """
    db_notification = Notification(
        partner_id=partner_id,
        type=type,
        title=title,
        message=message,
        related_entity_id=related_entity_id,
    )
    db.add(db_notification)
    return db_notification

def get_notifications(
    db: Session,
    partner_id: int,
    skip: int = 0,
    limit: int = 20,
    unread_only: bool = False
) -> List[Notification]:
    """Получает пагинированный список уведомлений."""
    query = db.query(Notification).filter(Notification.partner_id == partner_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(skip).limit(limit).all()

def count_notifications(db: Session, partner_id: int, unread_only: bool = False) -> int:
    """Считает уведомления с фильтром."""
    query = db.query(Notification).filter(Notification.partner_id == partner_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)
    return query.count()

def mark_notification_as_read(db: Session, partner_id: int, notification_id: int) -> Notification | None:
    """Помечает конкретное уведомление как прочитанное."""
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.partner_id == partner_id,
    ).first()
    if notification:
        notification.is_read = True
        db.commit()
    return notification

def mark_all_notifications_as_read(db: Session, partner_id: int):
    """Помечает все уведомления партнера как прочитанные."""
    stmt = update(Notification).where(
        Notification.partner_id == partner_id,
        Notification.is_read == False
    ).values(is_read=True)
    db.execute(stmt)
    db.commit()
