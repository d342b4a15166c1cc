# partnerhub/bot/services/notification.py
import html
import logging

from aiogram.exceptions import TelegramAPIError

from partnerhub.bot import core as bot_core
from partnerhub.core.config import settings
from partnerhub.models.partner import Partner
from partnerhub.models.withdrawal import Withdrawal

logger = logging.getLogger(__name__)

PAYMENT_METHOD_TITLES = {
    "paypal": "PayPal",
    "upi": "UPI",
    "crypto": "Cryptocurrency",
}


async def _send_to_admin_chat(text: str) -> bool:
    """
    Отправляет сообщение в админский чат.
    Возвращает False, если бот не настроен или Telegram вернул ошибку.
    """
    if bot_core.bot is None or not settings.ADMIN_CHAT_ID:
        logger.debug("Telegram admin chat is not configured. Skipping admin alert.")
        return False
    try:
        await bot_core.bot.send_message(chat_id=settings.ADMIN_CHAT_ID, text=text)
        return True
    except TelegramAPIError as e:
        logger.error(f"Failed to send admin alert: {e}")
        return False


async def send_error_to_admins(error_message: str) -> bool:
    """Критическая ошибка API."""
    # Лимит Telegram на длину сообщения - 4096 символов
    return await _send_to_admin_chat(error_message[:4000])


async def send_new_withdrawal_to_admin(withdrawal: Withdrawal, partner: Partner) -> bool:
    method = PAYMENT_METHOD_TITLES.get(withdrawal.payment_method, withdrawal.payment_method)
    text = (
        f"💸 <b>New withdrawal request #{withdrawal.id}</b>\n\n"
        f"<b>Partner:</b> {html.escape(partner.username)} (<code>{partner.partner_code}</code>)\n"
        f"<b>Amount:</b> ${withdrawal.amount}\n"
        f"<b>Method:</b> {method}\n"
        f"<b>Details:</b> <code>{html.escape(withdrawal.payment_details)}</code>"
    )
    return await _send_to_admin_chat(text)


async def send_new_message_to_admin(partner: Partner, content: str) -> bool:
    snippet = content if len(content) <= 300 else content[:300] + "…"
    text = (
        f"✉️ <b>Message from {html.escape(partner.username)}</b> (<code>{partner.partner_code}</code>)\n\n"
        f"{html.escape(snippet)}"
    )
    return await _send_to_admin_chat(text)
