# partnerhub/services/user.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from partnerhub.crud import partner as crud_partner
from partnerhub.models.partner import Partner
from partnerhub.schemas.partner import PartnerUpdate
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)


async def update_profile(db: Session, partner: Partner, update_data: PartnerUpdate) -> Partner:
    """Обновляет имя, username и Instagram партнера."""
    update_data_dict = update_data.model_dump(exclude_unset=True)
    if not update_data_dict:
        return partner

    new_username = update_data_dict.get("username")
    if new_username and new_username != partner.username:
        if crud_partner.get_partner_by_username(db, username=new_username):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username is already taken")

    if "instagram_username" in update_data_dict and update_data_dict["instagram_username"]:
        update_data_dict["instagram_username"] = update_data_dict["instagram_username"].strip().lstrip("@") or None

    for key, value in update_data_dict.items():
        if key in ("name", "username") and value is None:
            continue
        setattr(partner, key, value)

    event = events_service.record_change(db, "partners", "update", row_id=partner.id, partner_id=partner.id)
    db.commit()
    db.refresh(partner)
    await events_service.publish([event])
    logger.info(f"Partner {partner.id} updated profile fields: {list(update_data_dict)}")
    return partner
