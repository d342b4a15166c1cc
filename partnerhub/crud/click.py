# partnerhub/crud/click.py

from datetime import datetime
from typing import List, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from partnerhub.models.click import Click, ShortLink, CLICK_KIND_DIRECT, CLICK_KIND_BONUS

# --- Короткие ссылки ---

def get_short_link_by_code(db: Session, short_code: str) -> ShortLink | None:
    return db.query(ShortLink).filter(ShortLink.short_code == short_code).first()

def get_short_link_by_target(db: Session, target_url: str) -> ShortLink | None:
    return db.query(ShortLink).filter(ShortLink.target_url == target_url).first()

def create_short_link(db: Session, short_code: str, target_url: str, partner_id: int) -> ShortLink:
    db_link = ShortLink(short_code=short_code, target_url=target_url, partner_id=partner_id)
    db.add(db_link)
    db.commit()
    db.refresh(db_link)
    return db_link

# --- Клики ---

def create_click(
    db: Session,
    partner_id: int,
    type: str,
    ip_address: str,
    user_agent: str,
    source_partner_id: int | None = None,
    source_click_id: int | None = None,
) -> Click:
    """
    Создает объект клика и добавляет его в сессию.
    Требует внешнего вызова db.commit().
    """
    click = Click(
        partner_id=partner_id,
        type=type,
        ip_address=ip_address,
        user_agent=user_agent,
        source_partner_id=source_partner_id,
        source_click_id=source_click_id,
    )
    db.add(click)
    return click

def has_direct_click_since(db: Session, partner_id: int, ip_address: str, since: datetime) -> bool:
    """Есть ли прямой клик этому партнеру с этого адреса начиная с `since`."""
    return db.query(Click.id).filter(
        Click.partner_id == partner_id,
        Click.type == CLICK_KIND_DIRECT,
        Click.ip_address == ip_address,
        Click.created_at >= since,
    ).first() is not None

def count_clicks(db: Session, partner_id: int, type: str | None = None) -> int:
    query = db.query(func.count(Click.id)).filter(Click.partner_id == partner_id)
    if type:
        query = query.filter(Click.type == type)
    return query.scalar()

def count_direct_clicks_since(db: Session, partner_id: int, since: datetime) -> int:
    return db.query(func.count(Click.id)).filter(
        Click.partner_id == partner_id,
        Click.type == CLICK_KIND_DIRECT,
        Click.created_at >= since,
    ).scalar()

def get_direct_click_ids(db: Session, partner_id: int) -> List[int]:
    """ID прямых кликов партнера в порядке их регистрации."""
    rows = db.query(Click.id).filter(
        Click.partner_id == partner_id,
        Click.type == CLICK_KIND_DIRECT,
    ).order_by(Click.id.asc()).all()
    return [row[0] for row in rows]

def get_credited_source_click_ids(db: Session, source_partner_id: int) -> Set[int]:
    """ID прямых кликов субпартнера, за которые уже начислен бонус."""
    rows = db.query(Click.source_click_id).filter(
        Click.type == CLICK_KIND_BONUS,
        Click.source_partner_id == source_partner_id,
        Click.source_click_id.isnot(None),
    ).all()
    return {row[0] for row in rows}

def count_bonus_from_source(db: Session, upstream_id: int, source_partner_id: int) -> int:
    return db.query(func.count(Click.id)).filter(
        Click.partner_id == upstream_id,
        Click.type == CLICK_KIND_BONUS,
        Click.source_partner_id == source_partner_id,
    ).scalar()

def get_recent_clicks(db: Session, partner_id: int, limit: int = 20) -> List[Click]:
    return db.query(Click).filter(Click.partner_id == partner_id).order_by(Click.id.desc()).limit(limit).all()

def get_click_by_id(db: Session, click_id: int) -> Click | None:
    return db.query(Click).filter(Click.id == click_id).first()
