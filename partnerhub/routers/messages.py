# partnerhub/routers/messages.py
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.message import Message, MessageCreate, UnreadCount
from partnerhub.services import message as message_service

router = APIRouter()


@router.get("/messages", response_model=List[Message])
def get_my_messages(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """Переписка с поддержкой, включая рассылки."""
    return message_service.get_my_conversation(db, current_partner, skip=skip, limit=limit)


@router.post("/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(
    message_data: MessageCreate,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return await message_service.send_to_support(db, current_partner, message_data)


@router.get("/messages/unread-count", response_model=UnreadCount)
def get_unread_count(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return message_service.get_unread_count(db, current_partner)


@router.post("/messages/{message_id}/read", response_model=Message)
def read_message(
    message_id: int,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return message_service.mark_as_read(db, current_partner, message_id)
