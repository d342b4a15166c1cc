# partnerhub/core/redis.py
import redis.asyncio as redis
from partnerhub.core.config import settings

# decode_responses=True автоматически декодирует ответы из байтов в строки
redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
