# partnerhub/services/admin.py

import logging
import math

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from partnerhub.crud import click as crud_click
from partnerhub.crud import message as crud_message
from partnerhub.crud import partner as crud_partner
from partnerhub.models.click import CLICK_KIND_DIRECT, CLICK_KIND_BONUS
from partnerhub.models.partner import Partner
from partnerhub.schemas.admin import AdminPartnerListItem, PaginatedAdminPartners
from partnerhub.services import events as events_service
from partnerhub.services import referral as referral_service

logger = logging.getLogger(__name__)


def get_paginated_partners(db: Session, page: int, size: int, search: str | None = None) -> PaginatedAdminPartners:
    """Собирает пагинированный список партнеров со статистикой для админки."""
    skip = (page - 1) * size

    partners = crud_partner.get_partners(db, skip=skip, limit=size, search=search)
    total_items = crud_partner.count_partners(db, search=search)
    total_pages = math.ceil(total_items / size) if total_items > 0 else 1

    items = []
    for partner in partners:
        direct = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_DIRECT)
        bonus = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_BONUS)
        items.append(AdminPartnerListItem(
            id=partner.id,
            name=partner.name,
            username=partner.username,
            email=partner.email,
            partner_code=partner.partner_code,
            referred_by=partner.referred_by,
            is_admin=partner.is_admin,
            joined_at=partner.joined_at,
            direct_clicks=direct,
            bonus_clicks=bonus,
            total_earnings=referral_service.calculate_earnings(direct, bonus),
            sub_partners_count=crud_partner.count_downline(db, partner.partner_code),
            unread_messages=crud_message.count_unread_from_partner(db, partner.id),
        ))

    return PaginatedAdminPartners(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        size=size,
        items=items,
    )


async def set_admin_flag(db: Session, admin: Partner, partner_id: int, is_admin: bool) -> Partner:
    partner = crud_partner.get_partner_by_id(db, partner_id)
    if not partner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Partner not found")
    if partner.id == admin.id and not is_admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot revoke their own access")

    partner.is_admin = is_admin
    event = events_service.record_change(db, "partners", "update", row_id=partner.id, partner_id=partner.id)
    db.commit()
    db.refresh(partner)
    await events_service.publish([event])
    logger.info(f"Admin {admin.id} set is_admin={is_admin} for partner {partner.id}")
    return partner
