# partnerhub/routers/auth.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.core.limiter import limiter
from partnerhub.dependencies import get_db
from partnerhub.schemas.partner import LoginData, SignupData, Token
from partnerhub.services import auth as auth_service

router = APIRouter()


@router.get("/")
def read_root():
    return {"status": "ok"}


@router.post("/auth/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def signup(request: Request, signup_data: SignupData, db: Session = Depends(get_db)):
    """
    Регистрация партнера. Код пригласившего (?ref=) передается в `referred_by`.
    """
    return auth_service.signup(db, signup_data)


@router.post("/auth/login", response_model=Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
def login(request: Request, login_data: LoginData, db: Session = Depends(get_db)):
    return auth_service.login(db, login_data)
