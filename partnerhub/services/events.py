# partnerhub/services/events.py
"""
Лента изменений для клиентов дашборда.

Каждое изменение пишется в таблицу `change_events` в той же транзакции, что и сама
запись, а после коммита публикуется в канал Redis. Клиенты с push-подпиской
получают события через `subscribe`, остальные опрашивают `/events?after_id=`.
"""

import json
import logging
from typing import AsyncIterator, Iterable, Optional

from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.core.redis import redis_client
from partnerhub.crud import change_event as crud_event
from partnerhub.models.change_event import ChangeEvent
from partnerhub.models.partner import Partner
from partnerhub.schemas.notification import ChangeFeed, ChangeEvent as ChangeEventSchema

logger = logging.getLogger(__name__)


def record_change(db: Session, table_name: str, action: str, row_id: int, partner_id: Optional[int] = None) -> ChangeEvent:
    """Добавляет событие в текущую транзакцию. Коммит - на стороне вызывающего."""
    return crud_event.create_event(db, table_name=table_name, action=action, row_id=row_id, partner_id=partner_id)


def _serialize(event: ChangeEvent) -> str:
    return ChangeEventSchema.model_validate(event).model_dump_json()


async def publish(events: Iterable[ChangeEvent]):
    """
    Публикует уже закоммиченные события в Redis.
    Ошибка Redis не ломает запрос: клиент все равно увидит событие при опросе.
    """
    for event in events:
        try:
            await redis_client.publish(settings.EVENTS_CHANNEL, _serialize(event))
        except RedisError as e:
            logger.warning(f"Failed to publish change event {event.id} ({event.table_name}): {e}")


async def publish_rows(db: Session, table_name: str, row_ids: Iterable[int]):
    """Публикует события, записанные для указанных строк таблицы."""
    await publish(crud_event.get_events_for_rows(db, table_name, list(row_ids)))


async def subscribe(partner_id: int, table_name: Optional[str] = None) -> AsyncIterator[dict]:
    """
    Подписка на события партнера (и общие события) с фильтром по таблице.
    Транспорт-независимый генератор: отдает словари в формате ChangeEvent.
    """
    pubsub = redis_client.pubsub()
    await pubsub.subscribe(settings.EVENTS_CHANNEL)
    try:
        async for raw in pubsub.listen():
            if raw.get("type") != "message":
                continue
            try:
                payload = json.loads(raw["data"])
            except (TypeError, ValueError):
                logger.warning(f"Skipping malformed change event: {raw.get('data')!r}")
                continue
            if payload.get("partner_id") not in (None, partner_id):
                continue
            if table_name and payload.get("table_name") != table_name:
                continue
            yield payload
    finally:
        await pubsub.unsubscribe(settings.EVENTS_CHANNEL)
        await pubsub.aclose()


def get_feed(db: Session, partner: Partner, after_id: int, table_name: Optional[str], limit: int) -> ChangeFeed:
    """Опрос ленты изменений. Администраторы видят все события."""
    events = crud_event.get_events_after(
        db,
        partner_id=partner.id,
        after_id=after_id,
        table_name=table_name,
        limit=limit,
        include_all=partner.is_admin,
    )
    next_after_id = events[-1].id if events else after_id
    return ChangeFeed(items=events, next_after_id=next_after_id)
