# partnerhub/models/click.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import relationship
from partnerhub.db.session import Base

CLICK_KIND_DIRECT = "direct"
CLICK_KIND_BONUS = "bonus"


class ShortLink(Base):
    __tablename__ = "short_links"

    id = Column(Integer, primary_key=True, index=True)
    short_code = Column(String(16), unique=True, index=True, nullable=False)
    # Ссылка на страницу регистрации с ?ref=<partner_code>
    target_url = Column(String, unique=True, nullable=False)
    partner_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    partner = relationship("Partner")


class Click(Base):
    """Неизменяемая запись о клике. Заработок считается из количества записей."""
    __tablename__ = "clicks"
    __table_args__ = (
        Index("ix_clicks_partner_kind", "partner_id", "type"),
        Index("ix_clicks_dedupe", "partner_id", "ip_address", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Кому засчитывается клик
    partner_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False)

    # 'direct' - переход по собственной ссылке, 'bonus' - бонус от клика субпартнера
    type = Column(String(16), nullable=False)

    # Только для 'bonus': субпартнер и его прямой клик, за который начислен бонус.
    # Уникальность source_click_id гарантирует не более одного бонуса на клик.
    source_partner_id = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=True, index=True)
    source_click_id = Column(Integer, ForeignKey("clicks.id", ondelete="CASCADE"), nullable=True, unique=True)

    ip_address = Column(String, nullable=False)
    user_agent = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    partner = relationship("Partner", foreign_keys=[partner_id])
    source_partner = relationship("Partner", foreign_keys=[source_partner_id])
