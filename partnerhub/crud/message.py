# partnerhub/crud/message.py

from typing import List, Optional

from sqlalchemy import func, or_, and_, update
from sqlalchemy.orm import Session

from partnerhub.models.message import Message


def create_message(
    db: Session,
    sender_id: int,
    content: str,
    receiver_id: Optional[int] = None,
    is_admin: bool = False,
    is_broadcast: bool = False,
) -> Message:
    """Создает новое сообщение."""
    message = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        is_admin=is_admin,
        is_broadcast=is_broadcast,
        is_read=False,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message

def _conversation_filter(partner_id: int):
    # Переписка партнера: его сообщения в поддержку, ответы админов ему и рассылки
    return or_(
        and_(Message.sender_id == partner_id, Message.is_admin == False),
        and_(Message.receiver_id == partner_id, Message.is_admin == True),
        Message.is_broadcast == True,
    )

def get_conversation(db: Session, partner_id: int, skip: int = 0, limit: int = 100) -> List[Message]:
    """Переписка партнера в хронологическом порядке."""
    return db.query(Message).filter(
        _conversation_filter(partner_id)
    ).order_by(Message.created_at.asc(), Message.id.asc()).offset(skip).limit(limit).all()

def count_unread_for_partner(db: Session, partner_id: int) -> int:
    """Непрочитанные личные ответы администраторов (рассылки не считаются)."""
    return db.query(func.count(Message.id)).filter(
        Message.receiver_id == partner_id,
        Message.is_admin == True,
        Message.is_read == False,
    ).scalar()

def count_unread_from_partner(db: Session, partner_id: int) -> int:
    """Непрочитанные администраторами сообщения от партнера."""
    return db.query(func.count(Message.id)).filter(
        Message.sender_id == partner_id,
        Message.is_admin == False,
        Message.is_read == False,
    ).scalar()

def mark_read_for_partner(db: Session, partner_id: int, message_id: int) -> Optional[Message]:
    """Помечает ответ администратора партнеру как прочитанный."""
    message = db.query(Message).filter(
        Message.id == message_id,
        Message.receiver_id == partner_id,
        Message.is_admin == True,
    ).first()
    if message:
        message.is_read = True
        db.commit()
        db.refresh(message)
    return message

def mark_partner_messages_read(db: Session, partner_id: int):
    """Помечает все сообщения партнера в поддержку как прочитанные (админ открыл диалог)."""
    stmt = update(Message).where(
        Message.sender_id == partner_id,
        Message.is_admin == False,
        Message.is_read == False,
    ).values(is_read=True)
    db.execute(stmt)
    db.commit()
