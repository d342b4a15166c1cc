# partnerhub/routers/withdrawals.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.withdrawal import Withdrawal, WithdrawalCreate
from partnerhub.services import withdrawal as withdrawal_service

router = APIRouter()


@router.get("/withdrawals", response_model=List[Withdrawal])
def get_my_withdrawals(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return withdrawal_service.get_partner_withdrawals(db, current_partner)


@router.post("/withdrawals", response_model=Withdrawal, status_code=status.HTTP_201_CREATED)
async def create_withdrawal_request(
    withdrawal_data: WithdrawalCreate,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """
    Заявка на вывод средств. Доступна через 30 дней после регистрации
    и после 10 000 кликов; сумма не больше доступного баланса.
    """
    return await withdrawal_service.request_withdrawal(db, current_partner, withdrawal_data)
