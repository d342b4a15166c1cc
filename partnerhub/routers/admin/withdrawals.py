# partnerhub/routers/admin/withdrawals.py

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_db
from partnerhub.schemas.withdrawal import PaginatedAdminWithdrawals, Withdrawal, WithdrawalReview
from partnerhub.services import withdrawal as withdrawal_service

router = APIRouter()


@router.get("", response_model=PaginatedAdminWithdrawals)
def get_withdrawals_list(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Literal["pending", "approved", "rejected"] | None = Query(None),
    db: Session = Depends(get_db),
):
    return withdrawal_service.get_paginated_withdrawals(db, page, size, status_filter=status)


@router.put("/{withdrawal_id}", response_model=Withdrawal)
async def review_withdrawal(
    withdrawal_id: int,
    review: WithdrawalReview,
    db: Session = Depends(get_db),
):
    """
    [АДМИН] Одобрение или отклонение заявки. Партнер получает уведомление.
    """
    return await withdrawal_service.review_withdrawal(db, withdrawal_id, review)
