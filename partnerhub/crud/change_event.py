# partnerhub/crud/change_event.py
from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from partnerhub.models.change_event import ChangeEvent

def create_event(db: Session, table_name: str, action: str, row_id: int, partner_id: int | None) -> ChangeEvent:
    """
    Добавляет событие в сессию. Коммитится вместе с изменением, которое оно описывает.
    """
    event = ChangeEvent(table_name=table_name, action=action, row_id=row_id, partner_id=partner_id)
    db.add(event)
    return event

def get_events_after(
    db: Session,
    partner_id: int,
    after_id: int = 0,
    table_name: str | None = None,
    limit: int = 100,
    include_all: bool = False,
) -> List[ChangeEvent]:
    """События после курсора `after_id`, адресованные партнеру или всем."""
    query = db.query(ChangeEvent).filter(ChangeEvent.id > after_id)
    if not include_all:
        query = query.filter(or_(ChangeEvent.partner_id == partner_id, ChangeEvent.partner_id.is_(None)))
    if table_name:
        query = query.filter(ChangeEvent.table_name == table_name)
    return query.order_by(ChangeEvent.id.asc()).limit(limit).all()

def get_events_for_rows(db: Session, table_name: str, row_ids: List[int]) -> List[ChangeEvent]:
    if not row_ids:
        return []
    return db.query(ChangeEvent).filter(
        ChangeEvent.table_name == table_name,
        ChangeEvent.row_id.in_(row_ids),
    ).order_by(ChangeEvent.id.asc()).all()
