# partnerhub/schemas/partner.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class SignupData(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    instagram_username: Optional[str] = None
    # Код пригласившего партнера из ?ref=
    referred_by: Optional[str] = None

    @field_validator("referred_by", "instagram_username", mode="before")
    def empty_str_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class LoginData(BaseModel):
    email: EmailStr
    password: str


# Схема для ответа с токеном
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PartnerProfile(BaseModel):
    id: int
    name: str
    username: str
    email: EmailStr
    instagram_username: Optional[str] = None
    partner_code: str
    referred_by: Optional[str] = None
    is_admin: bool
    joined_at: datetime

    class Config:
        from_attributes = True


# Схема для данных, которые партнер может обновить
class PartnerUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    username: Optional[str] = Field(default=None, min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.]+$")
    instagram_username: Optional[str] = None


class ReferrerUpdate(BaseModel):
    partner_code: str = Field(min_length=1)
