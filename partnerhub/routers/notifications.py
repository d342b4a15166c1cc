# partnerhub/routers/notifications.py

from fastapi import APIRouter, Depends, Response, Query
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.notification import PaginatedNotifications
from partnerhub.services import notification_api as notification_service_api

router = APIRouter()

@router.get("/notifications", response_model=PaginatedNotifications)
def get_partner_notifications(
    unread_only: bool = Query(False, description="Вернуть только непрочитанные уведомления"),
    page: int = Query(1, ge=1, description="Номер страницы"),
    size: int = Query(20, ge=1, le=100, description="Количество уведомлений на странице"),
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """
    Пагинированный список уведомлений.
    Статус "показано" хранится на сервере: ?unread_only=true вернет только новые.
    """
    return notification_service_api.get_paginated(db, current_partner, page, size, unread_only)

@router.post("/notifications/{notification_id}/read", status_code=204)
def read_notification(
    notification_id: int,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    notification_service_api.mark_as_read(db, current_partner, notification_id)
    return Response(status_code=204)

@router.post("/notifications/read-all", status_code=204)
def read_all_notifications(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    notification_service_api.mark_all_as_read(db, current_partner)
    return Response(status_code=204)
