# partnerhub/models/change_event.py
from sqlalchemy import Column, Integer, String, DateTime, func
from partnerhub.db.session import Base

class ChangeEvent(Base):
    """Журнал изменений для клиентов, которые не могут держать push-подписку."""
    __tablename__ = "change_events"

    # Монотонный курсор для опроса
    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String(32), nullable=False, index=True)
    # 'insert' | 'update'
    action = Column(String(16), nullable=False)
    row_id = Column(Integer, nullable=False)
    # Кому адресовано событие; NULL - всем
    partner_id = Column(Integer, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
