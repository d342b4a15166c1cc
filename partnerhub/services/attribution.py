# partnerhub/services/attribution.py
"""
Атрибуция кликов и реферальные бонусы.

Цепочка для входящего клика: разрешение короткого кода -> проверка дубликата ->
запись прямого клика -> возможный бонус пригласившему партнеру.

Бонусы начисляются детерминированно: прямые клики субпартнера нумеруются в порядке
регистрации, и клик номер n приносит вышестоящему партнеру один бонусный клик, если
floor(n * p / 100) > floor((n - 1) * p / 100), где p = REFERRAL_BONUS_PERCENT.
При p = 20 это каждый пятый клик, а после N прямых кликов бонусов ровно floor(N * p / 100).
Бонус хранит ID породившего его прямого клика (source_click_id, уникальный), поэтому
один прямой клик никогда не дает больше одного бонуса.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.crud import click as crud_click
from partnerhub.crud import partner as crud_partner
from partnerhub.models.click import Click, CLICK_KIND_DIRECT, CLICK_KIND_BONUS
from partnerhub.models.partner import Partner
from partnerhub.schemas.click import ResolvedLink, ReconcileResult
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)

# Метаданные бонусов, досчитанных сверкой
SYSTEM_IP_ADDRESS = "127.0.0.1"
SYSTEM_BONUS_USER_AGENT = "SYSTEM_BONUS_CORRECTION"


class TrackedClick(NamedTuple):
    direct: Optional[Click]
    bonus: Optional[Click]

    @property
    def suppressed(self) -> bool:
        return self.direct is None


# --- Разрешение короткой ссылки ---

def resolve(db: Session, short_code: str) -> Optional[ResolvedLink]:
    """Находит владельца и целевой URL по короткому коду. Только чтение."""
    link = crud_click.get_short_link_by_code(db, short_code=short_code)
    if not link:
        return None
    return ResolvedLink(owner_partner_id=link.partner_id, destination_url=link.target_url)


# --- Защита от повторных кликов ---

def should_suppress(
    db: Session,
    beneficiary_id: int,
    origin_address: str,
    window: Optional[timedelta] = None,
) -> bool:
    """
    True, если за последние `window` уже был прямой клик этому партнеру с того же адреса.
    Если проверку выполнить не удалось, клик подавляется (fail closed):
    без успешной проверки на дубликат заработок не начисляется.
    """
    window = window or timedelta(hours=settings.DUPLICATE_CLICK_WINDOW_HOURS)
    since = datetime.now(timezone.utc) - window
    try:
        return crud_click.has_direct_click_since(db, partner_id=beneficiary_id, ip_address=origin_address, since=since)
    except SQLAlchemyError:
        logger.error(
            f"Duplicate-click lookup failed for partner {beneficiary_id} from {origin_address}. Suppressing click.",
            exc_info=True,
        )
        db.rollback()
        return True


# --- Запись прямого клика ---

def record_direct_click(db: Session, beneficiary_id: int, origin_address: str, user_agent: str) -> Click:
    """
    Записывает ровно один прямой клик. Не повторяется при ошибке:
    повтор после таймаута мог бы засчитать клик дважды, поэтому ошибка пробрасывается.
    """
    click = crud_click.create_click(
        db,
        partner_id=beneficiary_id,
        type=CLICK_KIND_DIRECT,
        ip_address=origin_address,
        user_agent=user_agent,
    )
    try:
        db.flush()
        events_service.record_change(db, "clicks", "insert", row_id=click.id, partner_id=beneficiary_id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(click)
    logger.info(f"Recorded direct click {click.id} for partner {beneficiary_id}")
    return click


# --- Реферальный бонус ---

def expected_bonus_count(direct_clicks: int, percent: Optional[int] = None) -> int:
    """Сколько бонусов положено за `direct_clicks` прямых кликов (округление вниз)."""
    percent = settings.REFERRAL_BONUS_PERCENT if percent is None else percent
    return direct_clicks * percent // 100


def _is_milestone(position: int, percent: int) -> bool:
    return position * percent // 100 > (position - 1) * percent // 100


def _uncredited_milestones(db: Session, downline_id: int) -> List[int]:
    """ID прямых кликов субпартнера, которые дают бонус, но еще не получили его."""
    percent = settings.REFERRAL_BONUS_PERCENT
    credited = crud_click.get_credited_source_click_ids(db, source_partner_id=downline_id)
    direct_ids = crud_click.get_direct_click_ids(db, partner_id=downline_id)
    return [
        click_id
        for position, click_id in enumerate(direct_ids, start=1)
        if _is_milestone(position, percent) and click_id not in credited
    ]


def _resolve_upstream(db: Session, downline: Partner) -> Optional[Partner]:
    if not downline.referred_by:
        return None
    upstream = crud_partner.get_partner_by_code(db, code=downline.referred_by)
    if not upstream:
        logger.warning(
            f"Partner {downline.id} references unknown referrer code '{downline.referred_by}'. Skipping bonus."
        )
        return None
    if upstream.id == downline.id:
        logger.warning(f"Partner {downline.id} references itself as referrer. Skipping bonus.")
        return None
    return upstream


def maybe_credit_upstream(db: Session, downline_partner_id: int) -> Optional[Click]:
    """
    Начисляет пригласившему партнеру не более одного бонуса за самый ранний
    неоплаченный "юбилейный" клик субпартнера. Отсутствующий или битый
    referred_by - не ошибка, просто None.
    """
    downline = crud_partner.get_partner_by_id(db, downline_partner_id)
    if not downline:
        return None
    upstream = _resolve_upstream(db, downline)
    if not upstream:
        return None

    direct_count = crud_click.count_clicks(db, partner_id=downline.id, type=CLICK_KIND_DIRECT)
    existing = crud_click.count_bonus_from_source(db, upstream_id=upstream.id, source_partner_id=downline.id)
    if existing >= expected_bonus_count(direct_count):
        return None

    milestones = _uncredited_milestones(db, downline.id)
    if not milestones:
        return None

    source_click = crud_click.get_click_by_id(db, milestones[0])
    bonus = crud_click.create_click(
        db,
        partner_id=upstream.id,
        type=CLICK_KIND_BONUS,
        ip_address=source_click.ip_address,
        user_agent=source_click.user_agent,
        source_partner_id=downline.id,
        source_click_id=source_click.id,
    )
    try:
        db.flush()
        events_service.record_change(db, "clicks", "insert", row_id=bonus.id, partner_id=upstream.id)
        db.commit()
    except IntegrityError:
        # Бонус за этот клик уже начислен параллельным запросом
        db.rollback()
        logger.info(f"Bonus for click {milestones[0]} already credited concurrently.")
        return None
    db.refresh(bonus)
    logger.info(
        f"Credited bonus click {bonus.id} to partner {upstream.id} for direct click {source_click.id} of partner {downline.id}"
    )
    return bonus


async def register_click(db: Session, beneficiary_id: int, origin_address: str, user_agent: str) -> TrackedClick:
    """
    Полный путь входящего клика для уже известного получателя:
    проверка дубликата -> прямой клик -> возможный бонус.
    Ошибки при начислении бонуса не влияют на результат прямого клика.
    """
    if should_suppress(db, beneficiary_id, origin_address):
        logger.info(f"Suppressed duplicate click for partner {beneficiary_id} from {origin_address}")
        return TrackedClick(direct=None, bonus=None)

    direct = record_direct_click(db, beneficiary_id, origin_address, user_agent)
    published = [direct.id]

    bonus = None
    try:
        bonus = maybe_credit_upstream(db, beneficiary_id)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to evaluate referral bonus for click {direct.id}", exc_info=True)
    if bonus:
        published.append(bonus.id)

    await events_service.publish_rows(db, "clicks", published)
    return TrackedClick(direct=direct, bonus=bonus)


# --- Сверка бонусов ---

async def reconcile(db: Session, upstream_partner_id: int) -> ReconcileResult:
    """
    Досчитывает недостающие бонусы по всем субпартнерам.
    Каждый субпартнер обрабатывается отдельной транзакцией: строка субпартнера
    блокируется, недостача пересчитывается заново и сразу закрывается.
    Пересекающиеся сверки упираются в уникальный source_click_id и откатываются.
    """
    upstream = crud_partner.get_partner_by_id(db, upstream_partner_id)
    if not upstream:
        logger.warning(f"Reconciliation requested for unknown partner {upstream_partner_id}")
        return ReconcileResult(patched=0)

    downline_ids = [p.id for p in crud_partner.get_downline(db, upstream.partner_code)]
    patched = 0
    inserted_ids: List[int] = []

    for downline_id in downline_ids:
        if downline_id == upstream.id:
            logger.warning(f"Partner {upstream.id} references itself as referrer. Skipping reconciliation.")
            continue
        try:
            crud_partner.lock_partner(db, downline_id)
            milestones = _uncredited_milestones(db, downline_id)
            if not milestones:
                db.rollback()
                continue
            bonuses = [
                crud_click.create_click(
                    db,
                    partner_id=upstream.id,
                    type=CLICK_KIND_BONUS,
                    ip_address=SYSTEM_IP_ADDRESS,
                    user_agent=SYSTEM_BONUS_USER_AGENT,
                    source_partner_id=downline_id,
                    source_click_id=click_id,
                )
                for click_id in milestones
            ]
            db.flush()
            for bonus in bonuses:
                events_service.record_change(db, "clicks", "insert", row_id=bonus.id, partner_id=upstream.id)
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                f"Concurrent reconciliation detected for partner {downline_id}; skipping this pass."
            )
            continue

        patched += len(bonuses)
        inserted_ids.extend(b.id for b in bonuses)
        logger.info(f"Added {len(bonuses)} missing bonus clicks to partner {upstream.id} for sub-partner {downline_id}")

    if inserted_ids:
        await events_service.publish_rows(db, "clicks", inserted_ids)
    return ReconcileResult(patched=patched)
