# partnerhub/crud/partner.py
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from partnerhub.models.partner import Partner


def get_partner_by_id(db: Session, partner_id: int) -> Partner | None:
    """Получает партнера по его первичному ключу."""
    return db.query(Partner).filter(Partner.id == partner_id).first()

def get_partner_by_code(db: Session, code: str) -> Partner | None:
    return db.query(Partner).filter(Partner.partner_code == code).first()

def get_partner_by_email(db: Session, email: str) -> Partner | None:
    return db.query(Partner).filter(func.lower(Partner.email) == email.lower()).first()

def get_partner_by_username(db: Session, username: str) -> Partner | None:
    return db.query(Partner).filter(Partner.username == username).first()

def lock_partner(db: Session, partner_id: int) -> Partner | None:
    """
    Блокирует строку партнера до конца транзакции (SELECT ... FOR UPDATE).
    На SQLite блокировка игнорируется диалектом.
    """
    return db.query(Partner).filter(Partner.id == partner_id).with_for_update().first()

def create_partner(
    db: Session,
    name: str,
    username: str,
    email: str,
    password_hash: str,
    partner_code: str,
    referred_by: str | None = None,
    instagram_username: str | None = None,
    is_admin: bool = False,
) -> Partner:
    """Создает нового партнера в БД."""
    db_partner = Partner(
        name=name,
        username=username,
        email=email,
        password_hash=password_hash,
        partner_code=partner_code,
        referred_by=referred_by,
        instagram_username=instagram_username,
        is_admin=is_admin,
    )
    db.add(db_partner)
    db.commit()
    db.refresh(db_partner)
    return db_partner

def get_downline(db: Session, partner_code: str, search: str | None = None) -> list[Partner]:
    """Субпартнеры: все, у кого referred_by совпадает с кодом партнера."""
    query = db.query(Partner).filter(Partner.referred_by == partner_code)
    if search:
        search_query = f"%{search}%"
        query = query.filter(or_(
            Partner.username.ilike(search_query),
            Partner.partner_code.ilike(search_query),
        ))
    return query.order_by(Partner.joined_at.desc(), Partner.id.desc()).all()

def count_downline(db: Session, partner_code: str) -> int:
    return db.query(func.count(Partner.id)).filter(Partner.referred_by == partner_code).scalar()

def get_partners(db: Session, skip: int = 0, limit: int = 20, search: str | None = None) -> list[Partner]:
    """Пагинированный список партнеров для админки (от новых к старым)."""
    query = db.query(Partner)
    if search:
        search_query = f"%{search}%"
        query = query.filter(or_(
            Partner.username.ilike(search_query),
            Partner.email.ilike(search_query),
            Partner.name.ilike(search_query),
            Partner.partner_code.ilike(search_query),
        ))
    return query.order_by(Partner.joined_at.desc(), Partner.id.desc()).offset(skip).limit(limit).all()

def count_partners(db: Session, search: str | None = None) -> int:
    query = db.query(func.count(Partner.id))
    if search:
        search_query = f"%{search}%"
        query = query.filter(or_(
            Partner.username.ilike(search_query),
            Partner.email.ilike(search_query),
            Partner.name.ilike(search_query),
            Partner.partner_code.ilike(search_query),
        ))
    return query.scalar()

def get_non_admin_ids(db: Session) -> list[int]:
    return [row[0] for row in db.query(Partner.id).filter(Partner.is_admin == False).all()]
