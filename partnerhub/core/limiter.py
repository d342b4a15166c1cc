# partnerhub/core/limiter.py

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from partnerhub.core.config import settings

logger = logging.getLogger(__name__)

# --- Функция-ключ для идентификации запросов ---

def key_func(request: Request) -> str:
    """
    Определяет, как идентифицировать запрос для применения лимита.
    Клики приходят через прокси, поэтому сначала смотрим на x-forwarded-for.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)

# Хранилище счетчиков - Redis (синхронный драйвер, его ожидает slowapi).
# Для тестов и локального запуска можно передать memory:// через RATE_LIMIT_STORAGE_URI.
storage_uri = settings.RATE_LIMIT_STORAGE_URI or settings.REDIS_URL

limiter = Limiter(
    key_func=key_func,
    storage_uri=storage_uri,
    strategy="moving-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
