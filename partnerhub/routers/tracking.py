# partnerhub/routers/tracking.py
"""
Публичные точки входа кликов: редирект по короткой ссылке и трекинг клика по коду.

Роутер подключается к приложению последним: GET /{path} перехватывает любой путь.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from partnerhub.core.config import settings
from partnerhub.core.limiter import limiter
from partnerhub.crud import partner as crud_partner
from partnerhub.dependencies import get_db
from partnerhub.schemas.click import TrackClickRequest
from partnerhub.services import attribution as attribution_service

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
DEFAULT_ORIGIN_ADDRESS = "0.0.0.0"
DEFAULT_USER_AGENT = "Unknown"


def get_origin_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.headers.get("x-real-ip") or DEFAULT_ORIGIN_ADDRESS


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or DEFAULT_USER_AGENT


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


@router.options("/", include_in_schema=False)
@router.options("/{path:path}", include_in_schema=False)
def preflight(path: str = ""):
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/", tags=["Tracking"])
@limiter.limit(settings.CLICK_RATE_LIMIT)
async def track_click(request: Request, db: Session = Depends(get_db)):
    """
    Регистрирует клик по реферальному коду: {"referralCode": "..."}.
    Ответы клиенту фиксированы, клиент их не разбирает, только логирует.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    try:
        payload = TrackClickRequest.model_validate(body if isinstance(body, dict) else {})
    except ValidationError:
        payload = TrackClickRequest()
    if not payload.referral_code:
        return _error(400, "Referral code is required")

    try:
        partner = crud_partner.get_partner_by_code(db, code=payload.referral_code)
        if not partner:
            logger.info(f"Click for unknown referral code '{payload.referral_code}'")
            return _error(404, "Invalid referral code")

        result = await attribution_service.register_click(
            db, partner.id, get_origin_address(request), get_user_agent(request)
        )
    except Exception:
        logger.error(f"Failed to track click for code '{payload.referral_code}'", exc_info=True)
        return _error(500, "Internal server error")

    if result.suppressed:
        return JSONResponse(content={"message": "Click already recorded recently"}, headers=CORS_HEADERS)
    return JSONResponse(
        content={"success": True, "message": "Click registered successfully"},
        headers=CORS_HEADERS,
    )


@router.get("/", include_in_schema=False)
def redirect_without_code():
    return _error(400, "No short code provided")


@router.get("/{path:path}", tags=["Tracking"])
@limiter.limit(settings.CLICK_RATE_LIMIT)
async def redirect(path: str, request: Request, db: Session = Depends(get_db)):
    """
    Редирект по короткому коду (последний сегмент пути) с записью клика.
    Ошибка записи клика не мешает редиректу: посетитель всегда попадает на целевую страницу.
    """
    short_code = path.split("/")[-1]
    if not short_code:
        return _error(400, "No short code provided")

    try:
        link = attribution_service.resolve(db, short_code)
        if not link:
            logger.info(f"Redirect requested for unknown short code '{short_code}'")
            return _error(404, "Invalid short code")

        try:
            await attribution_service.register_click(
                db, link.owner_partner_id, get_origin_address(request), get_user_agent(request)
            )
        except SQLAlchemyError:
            logger.error(f"Failed to record click for short code '{short_code}'", exc_info=True)
    except Exception as e:
        logger.error(f"Redirect failed for short code '{short_code}'", exc_info=True)
        return _error(500, str(e))

    logger.debug(f"Redirecting '{short_code}' to {link.destination_url}")
    return RedirectResponse(
        url=link.destination_url,
        status_code=302,
        headers={**CORS_HEADERS, **NO_CACHE_HEADERS},
    )
