# partnerhub/models/partner.py

from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from partnerhub.db.session import Base

class Partner(Base):
    __tablename__ = "partners"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    instagram_username = Column(String, nullable=True)

    # Реферальный ключ партнера, неизменяем после создания
    partner_code = Column(String(16), unique=True, index=True, nullable=False)
    # Код того, кто пригласил. Устанавливается один раз (см. services/referral.py)
    referred_by = Column(String(16), index=True, nullable=True)

    is_admin = Column(Boolean, default=False, nullable=False, server_default='false')
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
