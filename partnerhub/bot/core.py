# partnerhub/bot/core.py
from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from partnerhub.core.config import settings

default_properties = DefaultBotProperties(parse_mode=ParseMode.HTML)

# Без токена бот не создается, уведомления администраторам просто пропускаются
bot = Bot(token=settings.TELEGRAM_BOT_TOKEN, default=default_properties) if settings.TELEGRAM_BOT_TOKEN else None
