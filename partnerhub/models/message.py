# partnerhub/models/message.py
from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, Boolean, func
from sqlalchemy.orm import relationship
from partnerhub.db.session import Base

class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL - сообщение партнера в поддержку или рассылка всем
    receiver_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=True, index=True)
    content = Column(Text, nullable=False)

    # Отправлено администратором
    is_admin = Column(Boolean, default=False, nullable=False, server_default='false')
    is_broadcast = Column(Boolean, default=False, nullable=False, server_default='false')
    is_read = Column(Boolean, default=False, nullable=False, server_default='false')
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sender = relationship("Partner", foreign_keys=[sender_id])
