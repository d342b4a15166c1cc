# partnerhub/services/auth.py

import base64
import hashlib
import hmac
import logging
import secrets
import string
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.crud import partner as crud_partner
from partnerhub.models.partner import Partner
from partnerhub.schemas.partner import LoginData, SignupData, Token

logger = logging.getLogger(__name__)

PASSWORD_ALGORITHM = "pbkdf2_sha256"
PASSWORD_ITERATIONS = 260_000
PARTNER_CODE_ALPHABET = string.ascii_uppercase + string.digits
PARTNER_CODE_LENGTH = 8


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PASSWORD_ITERATIONS)
    return f"{PASSWORD_ALGORITHM}${PASSWORD_ITERATIONS}${salt}${base64.b64encode(digest).decode()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt, expected = password_hash.split("$", 3)
    except ValueError:
        return False
    if algorithm != PASSWORD_ALGORITHM:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(base64.b64encode(digest).decode(), expected)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Создает JWT токен."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def generate_partner_code(db: Session) -> str:
    """Уникальный код партнера из заглавных букв и цифр."""
    while True:
        code = "".join(secrets.choice(PARTNER_CODE_ALPHABET) for _ in range(PARTNER_CODE_LENGTH))
        if not crud_partner.get_partner_by_code(db, code=code):
            return code


def register_partner(db: Session, data: SignupData) -> Partner:
    """
    Регистрирует партнера. Код пригласившего проверяется сразу:
    неизвестный код - ошибка регистрации, а не тихо потерянная связь.
    """
    if crud_partner.get_partner_by_email(db, email=data.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already registered")
    if crud_partner.get_partner_by_username(db, username=data.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username is already taken")

    referred_by = None
    if data.referred_by:
        referrer = crud_partner.get_partner_by_code(db, code=data.referred_by)
        if not referrer:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid referral code")
        referred_by = referrer.partner_code

    try:
        partner = crud_partner.create_partner(
            db,
            name=data.name,
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            partner_code=generate_partner_code(db),
            referred_by=referred_by,
            instagram_username=data.instagram_username,
        )
    except IntegrityError:
        db.rollback()
        logger.warning(f"Signup race for email {data.email} / username {data.username}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or username is already registered")

    logger.info(f"Registered partner {partner.id} with code {partner.partner_code} (referred_by={referred_by})")
    return partner


def signup(db: Session, data: SignupData) -> Token:
    partner = register_partner(db, data)
    return Token(access_token=create_access_token({"sub": str(partner.id)}))


def login(db: Session, data: LoginData) -> Token:
    partner = crud_partner.get_partner_by_email(db, email=data.email)
    if not partner or not verify_password(data.password, partner.password_hash):
        logger.warning(f"Failed login attempt for {data.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Token(access_token=create_access_token({"sub": str(partner.id)}))
