# partnerhub/schemas/admin.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class AdminPartnerListItem(BaseModel):
    id: int
    name: str
    username: str
    email: str
    partner_code: str
    referred_by: Optional[str] = None
    is_admin: bool
    joined_at: datetime
    direct_clicks: int
    bonus_clicks: int
    total_earnings: Decimal
    sub_partners_count: int
    unread_messages: int


class PaginatedAdminPartners(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    size: int
    items: List[AdminPartnerListItem]


class AdminFlagUpdate(BaseModel):
    is_admin: bool
