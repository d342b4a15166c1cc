# partnerhub/services/referral.py
import logging
import secrets
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.crud import click as crud_click
from partnerhub.crud import partner as crud_partner
from partnerhub.crud import project as crud_project
from partnerhub.crud import withdrawal as crud_withdrawal
from partnerhub.models.click import ShortLink, CLICK_KIND_DIRECT, CLICK_KIND_BONUS
from partnerhub.models.partner import Partner
from partnerhub.schemas.click import (
    PartnerStats, PublicEarnings, ReferralLink, SubPartner, SubPartnerList,
)
from partnerhub.services import attribution as attribution_service
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)

SHORT_CODE_LENGTH = 6


def _as_utc(value: datetime) -> datetime:
    # SQLite отдает наивные datetime, Postgres - с таймзоной
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# --- Граф приглашений ---

async def set_referrer(db: Session, partner: Partner, referrer_code: str) -> Partner:
    """
    Устанавливает пригласившего партнера. referred_by неизменяем после установки,
    а граф приглашений должен оставаться лесом: изменение, создающее цикл, отклоняется.
    """
    if partner.referred_by:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Referrer is already set")

    referrer = crud_partner.get_partner_by_code(db, code=referrer_code)
    if not referrer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid referral code")
    if referrer.id == partner.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Partner cannot refer themselves")

    # Поднимаемся от нового пригласившего вверх; встретили себя - будет цикл
    seen = {referrer.partner_code}
    current = referrer
    while current.referred_by:
        if current.referred_by == partner.partner_code:
            logger.warning(f"Rejected referrer {referrer.partner_code} for partner {partner.id}: would create a cycle")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Referral cycle is not allowed")
        if current.referred_by in seen:
            # Цикл выше по цепочке уже существует (старые данные) - дальше не идем
            logger.error(f"Existing referral cycle detected at code {current.referred_by}")
            break
        seen.add(current.referred_by)
        current = crud_partner.get_partner_by_code(db, code=current.referred_by)
        if current is None:
            break

    partner.referred_by = referrer.partner_code
    event = events_service.record_change(db, "partners", "update", row_id=partner.id, partner_id=referrer.id)
    db.commit()
    db.refresh(partner)
    await events_service.publish([event])
    logger.info(f"Partner {partner.id} is now referred by {referrer.partner_code}")
    return partner


# --- Короткие ссылки ---

def build_referral_link(partner: Partner) -> str:
    return f"{settings.JOIN_BASE_URL}?ref={partner.partner_code}"


def get_or_create_short_link(db: Session, partner: Partner) -> ShortLink:
    """
    Возвращает короткую ссылку партнера, создавая ее при первом обращении.
    Для одной и той же целевой ссылки запись никогда не дублируется.
    """
    target_url = build_referral_link(partner)
    link = crud_click.get_short_link_by_target(db, target_url=target_url)
    if link:
        return link

    short_code = secrets.token_urlsafe(SHORT_CODE_LENGTH)[:SHORT_CODE_LENGTH]
    while crud_click.get_short_link_by_code(db, short_code=short_code):
        short_code = secrets.token_urlsafe(SHORT_CODE_LENGTH)[:SHORT_CODE_LENGTH]

    try:
        link = crud_click.create_short_link(db, short_code=short_code, target_url=target_url, partner_id=partner.id)
    except IntegrityError:
        # Параллельный запрос успел создать ссылку первым
        db.rollback()
        link = crud_click.get_short_link_by_target(db, target_url=target_url)
        if link is None:
            raise
        return link

    logger.info(f"Created short link '{short_code}' for partner {partner.id}")
    return link


def get_referral_link(db: Session, partner: Partner) -> ReferralLink:
    link = get_or_create_short_link(db, partner)
    return ReferralLink(
        partner_code=partner.partner_code,
        referral_link=link.target_url,
        short_code=link.short_code,
        short_url=f"{settings.SHORT_LINK_BASE_URL.rstrip('/')}/{link.short_code}",
    )


# --- Субпартнеры ---

async def get_sub_partners(db: Session, partner: Partner, search: str | None = None) -> SubPartnerList:
    """
    Список субпартнеров со статистикой. Перед выдачей запускается сверка,
    чтобы бонусы партнера соответствовали кликам субпартнеров.
    """
    result = await attribution_service.reconcile(db, partner.id)

    active_since = datetime.now(timezone.utc) - timedelta(days=settings.SUB_PARTNER_ACTIVE_DAYS)
    items = []
    for sub in crud_partner.get_downline(db, partner.partner_code, search=search):
        total_clicks = crud_click.count_clicks(db, partner_id=sub.id, type=CLICK_KIND_DIRECT)
        recent_clicks = crud_click.count_direct_clicks_since(db, partner_id=sub.id, since=active_since)
        items.append(SubPartner(
            id=sub.id,
            username=sub.username,
            partner_code=sub.partner_code,
            join_date=_as_utc(sub.joined_at).date(),
            total_clicks=total_clicks,
            bonus_clicks_earned=attribution_service.expected_bonus_count(total_clicks),
            status="active" if recent_clicks > 0 else "inactive",
        ))

    return SubPartnerList(
        items=items,
        total_bonus_clicks_earned=sum(item.bonus_clicks_earned for item in items),
        patched=result.patched,
    )


# --- Заработок ---

def calculate_earnings(direct_clicks: int, bonus_clicks: int) -> Decimal:
    """Каждый клик, прямой или бонусный, стоит CLICK_VALUE."""
    return (settings.CLICK_VALUE * (direct_clicks + bonus_clicks)).quantize(Decimal("0.01"))


def get_partner_stats(db: Session, partner: Partner) -> PartnerStats:
    direct = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_DIRECT)
    bonus = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_BONUS)
    earnings = calculate_earnings(direct, bonus)

    withdrawn = crud_withdrawal.sum_withdrawals(db, partner.id, statuses=["approved"])
    pending = crud_withdrawal.sum_withdrawals(db, partner.id, statuses=["pending"])
    available = max(earnings - withdrawn - pending, Decimal("0.00"))

    days_since_join = (datetime.now(timezone.utc) - _as_utc(partner.joined_at)).days
    days_until_withdrawal = max(0, settings.WITHDRAWAL_HOLD_DAYS - days_since_join)
    is_eligible = days_until_withdrawal == 0 and (direct + bonus) >= settings.WITHDRAWAL_MIN_CLICKS

    return PartnerStats(
        direct_clicks=direct,
        bonus_clicks=bonus,
        total_clicks=direct + bonus,
        earnings=earnings,
        project_reward_clicks=crud_project.sum_approved_reward_clicks(db, partner.id),
        sub_partners_count=crud_partner.count_downline(db, partner.partner_code),
        withdrawn=withdrawn,
        pending_withdrawals=pending,
        available_balance=available,
        days_until_withdrawal=days_until_withdrawal,
        is_eligible_for_withdrawal=is_eligible,
    )


def get_public_earnings(db: Session, partner_code: str) -> PublicEarnings:
    """Публичная проверка заработка по коду партнера."""
    partner = crud_partner.get_partner_by_code(db, code=partner_code)
    if not partner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Partner not found")
    direct = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_DIRECT)
    bonus = crud_click.count_clicks(db, partner_id=partner.id, type=CLICK_KIND_BONUS)
    return PublicEarnings(
        partner_code=partner.partner_code,
        username=partner.username,
        direct_clicks=direct,
        bonus_clicks=bonus,
        total_clicks=direct + bonus,
        earnings=calculate_earnings(direct, bonus),
    )
