# partnerhub/routers/admin/messages.py

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_admin_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.message import Message, MessageCreate
from partnerhub.services import message as message_service

router = APIRouter()


# Объявлен до /{partner_id}, иначе "broadcast" будет разобран как ID
@router.post("/broadcast", response_model=Message, status_code=status.HTTP_201_CREATED)
async def broadcast_message(
    message_data: MessageCreate,
    admin: Partner = Depends(get_admin_partner),
    db: Session = Depends(get_db),
):
    """[АДМИН] Рассылка всем партнерам."""
    return await message_service.broadcast(db, admin, message_data)


@router.get("/{partner_id}", response_model=List[Message])
def get_partner_conversation(partner_id: int, db: Session = Depends(get_db)):
    return message_service.get_partner_conversation(db, partner_id)


@router.post("/{partner_id}", response_model=Message, status_code=status.HTTP_201_CREATED)
async def reply_to_partner(
    partner_id: int,
    message_data: MessageCreate,
    admin: Partner = Depends(get_admin_partner),
    db: Session = Depends(get_db),
):
    return await message_service.reply_to_partner(db, admin, partner_id, message_data)
