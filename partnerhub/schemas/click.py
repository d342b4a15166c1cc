# partnerhub/schemas/click.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ResolvedLink(BaseModel):
    """Результат разрешения короткого кода."""
    owner_partner_id: int
    destination_url: str


class ClickRecord(BaseModel):
    id: int
    partner_id: int
    type: Literal["direct", "bonus"]
    source_partner_id: Optional[int] = None
    source_click_id: Optional[int] = None
    ip_address: str
    user_agent: str
    created_at: datetime

    class Config:
        from_attributes = True


class TrackClickRequest(BaseModel):
    # Имя поля задано клиентом (camelCase)
    referral_code: Optional[str] = Field(default=None, alias="referralCode")


class ReferralLink(BaseModel):
    partner_code: str
    referral_link: str
    short_code: str
    short_url: str


class ReconcileResult(BaseModel):
    patched: int


class SubPartner(BaseModel):
    id: int
    username: str
    partner_code: str
    join_date: date
    total_clicks: int
    bonus_clicks_earned: int
    status: Literal["active", "inactive"]


class SubPartnerList(BaseModel):
    items: List[SubPartner]
    total_bonus_clicks_earned: int
    patched: int


class PartnerStats(BaseModel):
    direct_clicks: int
    bonus_clicks: int
    total_clicks: int
    earnings: Decimal
    project_reward_clicks: int
    sub_partners_count: int
    withdrawn: Decimal
    pending_withdrawals: Decimal
    available_balance: Decimal
    days_until_withdrawal: int
    is_eligible_for_withdrawal: bool


class PublicEarnings(BaseModel):
    partner_code: str
    username: str
    direct_clicks: int
    bonus_clicks: int
    total_clicks: int
    earnings: Decimal
