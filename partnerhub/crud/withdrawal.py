# partnerhub/crud/withdrawal.py
from decimal import Decimal
from typing import List, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from partnerhub.models.withdrawal import Withdrawal

def create_withdrawal(
    db: Session,
    partner_id: int,
    amount: Decimal,
    payment_method: str,
    payment_details: str,
) -> Withdrawal:
    """Создает заявку на вывод в статусе 'pending'."""
    db_withdrawal = Withdrawal(
        partner_id=partner_id,
        amount=amount,
        payment_method=payment_method,
        payment_details=payment_details,
        status="pending",
    )
    db.add(db_withdrawal)
    db.commit()
    db.refresh(db_withdrawal)
    return db_withdrawal

def get_withdrawal_by_id(db: Session, withdrawal_id: int) -> Withdrawal | None:
    return db.query(Withdrawal).filter(Withdrawal.id == withdrawal_id).first()

def get_partner_withdrawals(db: Session, partner_id: int) -> List[Withdrawal]:
    return db.query(Withdrawal).filter(
        Withdrawal.partner_id == partner_id
    ).order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc()).all()

def get_withdrawals(db: Session, skip: int = 0, limit: int = 20, status: str | None = None) -> List[Withdrawal]:
    query = db.query(Withdrawal)
    if status:
        query = query.filter(Withdrawal.status == status)
    return query.order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc()).offset(skip).limit(limit).all()

def count_withdrawals(db: Session, status: str | None = None) -> int:
    query = db.query(func.count(Withdrawal.id))
    if status:
        query = query.filter(Withdrawal.status == status)
    return query.scalar()

def sum_withdrawals(db: Session, partner_id: int, statuses: Sequence[str]) -> Decimal:
    """Сумма заявок партнера в указанных статусах."""
    total = db.query(func.sum(Withdrawal.amount)).filter(
        Withdrawal.partner_id == partner_id,
        Withdrawal.status.in_(statuses),
    ).scalar()
    return Decimal(total or 0).quantize(Decimal("0.01"))
