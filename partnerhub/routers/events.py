# partnerhub/routers/events.py
import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.notification import ChangeFeed
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/events", response_model=ChangeFeed)
def poll_events(
    after_id: int = Query(0, ge=0, description="Вернуть события с ID больше указанного"),
    table: str | None = Query(None, description="Фильтр по таблице: clicks, withdrawals, messages..."),
    limit: int = Query(100, ge=1, le=500),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """
    Лента изменений для опроса. Клиент передает `next_after_id` из предыдущего ответа.
    """
    return events_service.get_feed(db, current_partner, after_id=after_id, table_name=table, limit=limit)


@router.get("/events/stream")
async def stream_events(
    request: Request,
    table: str | None = Query(None),
    current_partner: Partner = Depends(get_current_partner),
):
    """Push-подписка на ту же ленту (Server-Sent Events)."""
    partner_id = current_partner.id

    async def generate():
        async for event in events_service.subscribe(partner_id, table_name=table):
            if await request.is_disconnected():
                logger.debug(f"Event stream for partner {partner_id} closed by client")
                break
            yield f"data: {json.dumps(event)}\n\n"

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
