# partnerhub/dependencies.py

import logging
from typing import Optional, Iterator
from contextlib import contextmanager

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from jose import JWTError, jwt

from partnerhub.core.config import settings
from partnerhub.db.session import SessionLocal
from partnerhub.models.partner import Partner

logger = logging.getLogger(__name__)

# --- Схемы аутентификации ---
strict_bearer_scheme = HTTPBearer(auto_error=True)

# --- Управление сессией БД ---
def get_db_session_instance() -> Session:
    """Создает и возвращает экземпляр сессии БД."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI для получения сессии БД.
    Это генератор, который корректно работает с `Depends`.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def get_db_context() -> Iterator[Session]:
    """
    Контекстный менеджер для получения сессии БД вне FastAPI (скрипты, фоновые задачи).
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

# --- Зависимости аутентификации и авторизации ---

def _partner_id_from_token(token: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT Error during token decoding: {e}")
        return None
    partner_id = payload.get("sub")
    if partner_id is None:
        logger.warning("Token payload is missing 'sub' (partner_id).")
        return None
    try:
        return int(partner_id)
    except (TypeError, ValueError):
        logger.warning(f"Token 'sub' is not a partner id: {partner_id!r}")
        return None


def get_current_partner(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(strict_bearer_scheme),
    db: Session = Depends(get_db)
) -> Partner:
    """
    ОБЯЗАТЕЛЬНАЯ зависимость.
    Требует валидный токен. Если его нет или он невалиден - вызывает ошибку 401.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    partner_id = _partner_id_from_token(credentials.credentials)
    if partner_id is None:
        raise credentials_exception

    partner = db.query(Partner).filter(Partner.id == partner_id).first()
    if partner is None:
        logger.warning(f"Partner with ID {partner_id} from token not found in DB.")
        raise credentials_exception
    request.state.partner = partner
    logger.debug(f"Authenticated partner ID: {partner.id} ({partner.partner_code})")
    return partner


def get_admin_partner(current_partner: Partner = Depends(get_current_partner)) -> Partner:
    """
    Зависимость для защиты админских эндпоинтов.
    """
    if not current_partner.is_admin:
        logger.warning(f"Permission denied for partner {current_partner.id}: not an admin.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to access this resource."
        )
    return current_partner
