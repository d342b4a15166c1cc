# partnerhub/routers/partners.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_db
from partnerhub.schemas.click import PublicEarnings
from partnerhub.services import referral as referral_service

router = APIRouter()


@router.get("/partners/{partner_code}/earnings", response_model=PublicEarnings)
def get_partner_earnings(partner_code: str, db: Session = Depends(get_db)):
    """Публичная страница заработка партнера по его коду."""
    return referral_service.get_public_earnings(db, partner_code.strip().upper())
