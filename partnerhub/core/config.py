# partnerhub/core/config.py

from decimal import Decimal
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Настройки базы данных
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "partnerhub"
    # Полный URL (например, sqlite для локальных запусков) имеет приоритет над DATABASE_*
    DATABASE_URL_OVERRIDE: str | None = None

    # Настройки JWT токенов
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7 # 7 дней

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    EVENTS_CHANNEL: str = "partnerhub:changes"

    # Лимиты запросов (slowapi)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str | None = None
    CLICK_RATE_LIMIT: str = "60/minute"
    AUTH_RATE_LIMIT: str = "10/minute"

    CORS_ORIGINS_STR: str = Field(default="*", alias="CORS_ORIGINS")

    # Ссылки
    JOIN_BASE_URL: str = "https://tradingcircle.space/join"
    SHORT_LINK_BASE_URL: str = "https://go.tradingcircle.space"

    # Партнерская программа
    CLICK_VALUE: Decimal = Decimal("0.10")
    REFERRAL_BONUS_PERCENT: int = 20
    DUPLICATE_CLICK_WINDOW_HOURS: int = 24
    SUB_PARTNER_ACTIVE_DAYS: int = 30
    WITHDRAWAL_HOLD_DAYS: int = 30
    WITHDRAWAL_MIN_CLICKS: int = 10_000

    # Telegram-уведомления администраторам (необязательно)
    TELEGRAM_BOT_TOKEN: str | None = None
    ADMIN_CHAT_ID: int | None = None

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS_STR.split(',') if origin.strip()]

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+psycopg2://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

settings = Settings()
