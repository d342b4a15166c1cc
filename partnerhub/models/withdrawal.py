# partnerhub/models/withdrawal.py
from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from partnerhub.db.session import Base

class Withdrawal(Base):
    __tablename__ = "withdrawals"
    id = Column(Integer, primary_key=True, index=True)
    partner_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    # 'paypal', 'upi', 'crypto'
    payment_method = Column(String(16), nullable=False)
    payment_details = Column(String, nullable=False)

    # 'pending' -> 'approved' | 'rejected'
    status = Column(String(16), default="pending", nullable=False, index=True)
    admin_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    partner = relationship("Partner")
