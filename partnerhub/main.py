# partnerhub/main.py

import asyncio
import html
import traceback
import logging
from contextlib import asynccontextmanager
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

# Конфигурация и ядро
from partnerhub.core.config import settings as config
from partnerhub.core.cors import ApiCORSMiddleware
from partnerhub.core.limiter import limiter
from partnerhub.core.logging_config import setup_logging
from partnerhub.core.redis import redis_client

# Роутеры FastAPI
from partnerhub.routers import (
    auth, users, partners, withdrawals, projects, messages,
    notifications, events, tracking, admin as admin_router,
)

from partnerhub.bot import core as bot_core
from partnerhub.bot.services import notification as bot_notification_service

# --- Инициализация ---
logger = logging.getLogger(__name__)

# --- Обработчик критических ошибок ---
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    Логирует ошибку и отправляет уведомление администраторам.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)

    error_details = "".join(traceback.format_exception(exc))
    client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"

    error_message = (
        f"🚨 <b>Critical API error</b>\n\n"
        f"<b>URL:</b> <code>{request.method} {html.escape(str(request.url))}</code>\n"
        f"<b>Client:</b> <code>{client}</code>\n\n"
        f"<b>Traceback:</b>\n<pre>{html.escape(error_details)}</pre>"
    )

    asyncio.create_task(
        bot_notification_service.send_error_to_admins(error_message)
    )

    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error. The administrator has been notified."},
    )

# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")
    if bot_core.bot is None:
        logger.info("TELEGRAM_BOT_TOKEN is not set. Admin alerts are disabled.")

    yield

    logger.info("Application shutting down...")
    await redis_client.aclose()
    if bot_core.bot is not None:
        await bot_core.bot.session.close()

# --- Создание FastAPI приложения ---
app = FastAPI(
    title="Partner Hub",
    description="Partner dashboard backend: click attribution, referral bonuses and payouts",
    version="0.1.0",
    lifespan=lifespan
)

# Трекинг кликов (пути вне /api/) отдает собственные CORS-заголовки с "*"
app.add_middleware(
    ApiCORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Лимиты запросов ---
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Регистрация обработчика исключений ---
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(partners.router, tags=["Partners"])
api_router.include_router(withdrawals.router, tags=["Withdrawals"])
api_router.include_router(projects.router, tags=["Projects"])
api_router.include_router(messages.router, tags=["Messages"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(events.router, tags=["Events"])

# Админские эндпоинты
api_router.include_router(admin_router.router, prefix="/admin")

app.include_router(api_router)

# Редирект по коротким ссылкам перехватывает любой путь, поэтому подключается последним
app.include_router(tracking.router)
