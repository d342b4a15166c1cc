# partnerhub/services/withdrawal.py

import logging
import math
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from partnerhub.bot.services import notification as bot_notification_service
from partnerhub.core.config import settings
from partnerhub.crud import notification as crud_notification
from partnerhub.crud import withdrawal as crud_withdrawal
from partnerhub.models.partner import Partner
from partnerhub.models.withdrawal import Withdrawal
from partnerhub.schemas.withdrawal import (
    AdminWithdrawal, PaginatedAdminWithdrawals, WithdrawalCreate, WithdrawalReview,
)
from partnerhub.services import events as events_service
from partnerhub.services import referral as referral_service

logger = logging.getLogger(__name__)


async def request_withdrawal(db: Session, partner: Partner, data: WithdrawalCreate) -> Withdrawal:
    """
    Создает заявку на вывод. Условия: прошло WITHDRAWAL_HOLD_DAYS с регистрации,
    набрано WITHDRAWAL_MIN_CLICKS кликов и сумма не больше доступного баланса.
    """
    stats = referral_service.get_partner_stats(db, partner)

    if stats.days_until_withdrawal > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Withdrawals are available {settings.WITHDRAWAL_HOLD_DAYS} days after signup. "
                   f"{stats.days_until_withdrawal} days left.",
        )
    if stats.total_clicks < settings.WITHDRAWAL_MIN_CLICKS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"A minimum of {settings.WITHDRAWAL_MIN_CLICKS} clicks is required to withdraw.",
        )
    if data.amount > stats.available_balance:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Requested amount exceeds available balance (${stats.available_balance}).",
        )

    withdrawal = crud_withdrawal.create_withdrawal(
        db,
        partner_id=partner.id,
        amount=data.amount,
        payment_method=data.payment_method,
        payment_details=data.payment_details,
    )
    event = events_service.record_change(db, "withdrawals", "insert", row_id=withdrawal.id, partner_id=partner.id)
    db.commit()
    await events_service.publish([event])
    logger.info(f"Partner {partner.id} requested withdrawal {withdrawal.id} of ${withdrawal.amount}")

    await bot_notification_service.send_new_withdrawal_to_admin(withdrawal, partner)
    return withdrawal


def get_partner_withdrawals(db: Session, partner: Partner) -> List[Withdrawal]:
    return crud_withdrawal.get_partner_withdrawals(db, partner_id=partner.id)


def get_paginated_withdrawals(db: Session, page: int, size: int, status_filter: str | None) -> PaginatedAdminWithdrawals:
    """[АДМИН] Все заявки с данными партнера, от новых к старым."""
    skip = (page - 1) * size
    withdrawals = crud_withdrawal.get_withdrawals(db, skip=skip, limit=size, status=status_filter)
    total_items = crud_withdrawal.count_withdrawals(db, status=status_filter)
    total_pages = math.ceil(total_items / size) if total_items > 0 else 1

    items = [
        AdminWithdrawal(
            id=w.id,
            partner_id=w.partner_id,
            amount=w.amount,
            payment_method=w.payment_method,
            payment_details=w.payment_details,
            status=w.status,
            admin_message=w.admin_message,
            created_at=w.created_at,
            reviewed_at=w.reviewed_at,
            username=w.partner.username if w.partner else "Unknown",
            email=w.partner.email if w.partner else "Unknown",
        )
        for w in withdrawals
    ]
    return PaginatedAdminWithdrawals(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        size=size,
        items=items,
    )


async def review_withdrawal(db: Session, withdrawal_id: int, review: WithdrawalReview) -> Withdrawal:
    """[АДМИН] Одобряет или отклоняет заявку. Решение окончательное."""
    withdrawal = crud_withdrawal.get_withdrawal_by_id(db, withdrawal_id)
    if not withdrawal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Withdrawal request not found")
    if withdrawal.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Withdrawal request is already {withdrawal.status}",
        )

    withdrawal.status = review.status
    withdrawal.admin_message = review.admin_message
    withdrawal.reviewed_at = datetime.now(timezone.utc)

    title = "Withdrawal approved" if review.status == "approved" else "Withdrawal rejected"
    message = f"Your withdrawal request for ${withdrawal.amount} has been {review.status}."
    if review.admin_message:
        message += f" {review.admin_message}"
    crud_notification.create_notification(
        db,
        partner_id=withdrawal.partner_id,
        type="withdrawal_reviewed",
        title=title,
        message=message,
        related_entity_id=str(withdrawal.id),
    )
    event = events_service.record_change(db, "withdrawals", "update", row_id=withdrawal.id, partner_id=withdrawal.partner_id)
    db.commit()
    db.refresh(withdrawal)
    await events_service.publish([event])
    logger.info(f"Withdrawal {withdrawal.id} marked as {review.status}")
    return withdrawal
