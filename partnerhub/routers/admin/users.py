# partnerhub/routers/admin/users.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_admin_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.admin import AdminFlagUpdate, PaginatedAdminPartners
from partnerhub.schemas.partner import PartnerProfile
from partnerhub.services import admin as admin_service

router = APIRouter()


@router.get("", response_model=PaginatedAdminPartners)
def get_partners_list(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, description="Поиск по username, email, имени или коду"),
    db: Session = Depends(get_db),
):
    """
    [АДМИН] Пагинированный список партнеров с кликами, заработком и непрочитанными сообщениями.
    """
    return admin_service.get_paginated_partners(db, page, size, search=search)


@router.put("/{partner_id}/admin", response_model=PartnerProfile)
async def update_admin_flag(
    partner_id: int,
    flag_data: AdminFlagUpdate,
    admin: Partner = Depends(get_admin_partner),
    db: Session = Depends(get_db),
):
    return await admin_service.set_admin_flag(db, admin, partner_id, flag_data.is_admin)
