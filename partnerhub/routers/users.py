# partnerhub/routers/users.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.crud import click as crud_click
from partnerhub.schemas.click import ClickRecord, PartnerStats, ReconcileResult, ReferralLink, SubPartnerList
from partnerhub.schemas.partner import PartnerProfile, PartnerUpdate, ReferrerUpdate
from partnerhub.services import attribution as attribution_service
from partnerhub.services import referral as referral_service
from partnerhub.services import user as user_service

router = APIRouter()


@router.get("/users/me", response_model=PartnerProfile)
def read_partner_me(current_partner: Partner = Depends(get_current_partner)):
    return current_partner


@router.put("/users/me", response_model=PartnerProfile)
async def update_partner_me(
    update_data: PartnerUpdate,
    db: Session = Depends(get_db),
    current_partner: Partner = Depends(get_current_partner)
):
    """Обновление имени, username и Instagram текущего партнера."""
    return await user_service.update_profile(db, current_partner, update_data)


@router.put("/users/me/referrer", response_model=PartnerProfile)
async def set_my_referrer(
    referrer_data: ReferrerUpdate,
    db: Session = Depends(get_db),
    current_partner: Partner = Depends(get_current_partner)
):
    """
    Привязка к пригласившему партнеру. Устанавливается один раз.
    """
    return await referral_service.set_referrer(db, current_partner, referrer_data.partner_code)


@router.get("/users/me/stats", response_model=PartnerStats)
def get_my_stats(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return referral_service.get_partner_stats(db, current_partner)


@router.get("/users/me/clicks", response_model=List[ClickRecord])
def get_my_recent_clicks(
    limit: int = Query(20, ge=1, le=100),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """Последние клики партнера (прямые и бонусные) для ленты активности."""
    return crud_click.get_recent_clicks(db, current_partner.id, limit=limit)


@router.get("/users/me/referral-link", response_model=ReferralLink)
def get_my_referral_link(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """Реферальная ссылка и короткая ссылка партнера (создается при первом запросе)."""
    return referral_service.get_referral_link(db, current_partner)


@router.get("/users/me/sub-partners", response_model=SubPartnerList)
async def get_my_sub_partners(
    search: str | None = Query(None, description="Поиск по username или коду партнера"),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return await referral_service.get_sub_partners(db, current_partner, search=search)


@router.post("/users/me/sub-partners/reconcile", response_model=ReconcileResult)
async def reconcile_my_bonuses(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """Досчитывает недостающие бонусные клики за субпартнеров."""
    return await attribution_service.reconcile(db, current_partner.id)
