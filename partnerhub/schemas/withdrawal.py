# partnerhub/schemas/withdrawal.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PaymentMethod = Literal["paypal", "upi", "crypto"]


class WithdrawalCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    payment_details: str = Field(min_length=1, max_length=255)


class Withdrawal(BaseModel):
    id: int
    partner_id: int
    amount: Decimal
    payment_method: PaymentMethod
    payment_details: str
    status: Literal["pending", "approved", "rejected"]
    admin_message: Optional[str] = None
    created_at: datetime
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdminWithdrawal(Withdrawal):
    username: str
    email: str


class PaginatedAdminWithdrawals(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    size: int
    items: List[AdminWithdrawal]


class WithdrawalReview(BaseModel):
    status: Literal["approved", "rejected"]
    admin_message: Optional[str] = None
