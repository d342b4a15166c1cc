# partnerhub/services/message.py

import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from partnerhub.bot.services import notification as bot_notification_service
from partnerhub.crud import message as crud_message
from partnerhub.crud import notification as crud_notification
from partnerhub.crud import partner as crud_partner
from partnerhub.models.message import Message
from partnerhub.models.partner import Partner
from partnerhub.schemas.message import MessageCreate, UnreadCount
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)


# --- Партнер ---

async def send_to_support(db: Session, partner: Partner, data: MessageCreate) -> Message:
    message = crud_message.create_message(db, sender_id=partner.id, content=data.content)
    event = events_service.record_change(db, "messages", "insert", row_id=message.id, partner_id=partner.id)
    db.commit()
    await events_service.publish([event])
    logger.info(f"Partner {partner.id} sent support message {message.id}")

    await bot_notification_service.send_new_message_to_admin(partner, data.content)
    return message


def get_my_conversation(db: Session, partner: Partner, skip: int = 0, limit: int = 100) -> List[Message]:
    return crud_message.get_conversation(db, partner_id=partner.id, skip=skip, limit=limit)


def get_unread_count(db: Session, partner: Partner) -> UnreadCount:
    return UnreadCount(unread=crud_message.count_unread_for_partner(db, partner_id=partner.id))


def mark_as_read(db: Session, partner: Partner, message_id: int) -> Message:
    message = crud_message.mark_read_for_partner(db, partner_id=partner.id, message_id=message_id)
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message


# --- Администратор ---

def get_partner_conversation(db: Session, partner_id: int) -> List[Message]:
    """[АДМИН] Переписка с партнером. Открытие диалога помечает его сообщения прочитанными."""
    if not crud_partner.get_partner_by_id(db, partner_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Partner not found")
    crud_message.mark_partner_messages_read(db, partner_id=partner_id)
    return crud_message.get_conversation(db, partner_id=partner_id)


async def reply_to_partner(db: Session, admin: Partner, partner_id: int, data: MessageCreate) -> Message:
    if not crud_partner.get_partner_by_id(db, partner_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Partner not found")

    message = crud_message.create_message(
        db, sender_id=admin.id, receiver_id=partner_id, content=data.content, is_admin=True
    )
    crud_notification.create_notification(
        db,
        partner_id=partner_id,
        type="new_message",
        title="New message from support",
        message=data.content[:200],
        related_entity_id=str(message.id),
    )
    event = events_service.record_change(db, "messages", "insert", row_id=message.id, partner_id=partner_id)
    db.commit()
    await events_service.publish([event])
    logger.info(f"Admin {admin.id} replied to partner {partner_id} (message {message.id})")
    return message


async def broadcast(db: Session, admin: Partner, data: MessageCreate) -> Message:
    """[АДМИН] Сообщение всем партнерам. Каждому не-админу создается уведомление."""
    message = crud_message.create_message(db, sender_id=admin.id, content=data.content, is_admin=True, is_broadcast=True)
    recipients = crud_partner.get_non_admin_ids(db)
    for partner_id in recipients:
        crud_notification.create_notification(
            db,
            partner_id=partner_id,
            type="broadcast",
            title="Announcement",
            message=data.content[:200],
            related_entity_id=str(message.id),
        )
    event = events_service.record_change(db, "messages", "insert", row_id=message.id)
    db.commit()
    await events_service.publish([event])
    logger.info(f"Admin {admin.id} broadcast message {message.id} to {len(recipients)} partners")
    return message
