# tests/conftest.py
import os

# Настройки читаются при импорте partnerhub, поэтому окружение задаем до него
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["TELEGRAM_BOT_TOKEN"] = ""

import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from partnerhub.crud import partner as crud_partner
from partnerhub.db.session import Base
from partnerhub.dependencies import get_db
from partnerhub.main import app
from partnerhub.models.partner import Partner
from partnerhub.services.auth import create_access_token

# In-memory SQLite: одно соединение на все сессии (StaticPool), чтобы таблицы были видны приложению
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

_counter = itertools.count(1)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Фикстура для создания чистой базы данных для каждого теста.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(db_session: Session):
    """HTTP-клиент к приложению; эндпоинты работают с той же сессией, что и тест."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def mock_redis(mocker) -> MagicMock:
    """Публикация событий в Redis подменяется: тесты не требуют запущенного Redis."""
    redis_mock = MagicMock()
    redis_mock.publish = AsyncMock(return_value=1)
    mocker.patch("partnerhub.services.events.redis_client", redis_mock)
    return redis_mock


@pytest.fixture
def make_partner(db_session: Session):
    """Фабрика партнеров. Пароль не хешируется: для входа по паролю см. test_auth.py."""
    def _make_partner(
        partner_code: str | None = None,
        referred_by: str | None = None,
        is_admin: bool = False,
        username: str | None = None,
    ) -> Partner:
        n = next(_counter)
        return crud_partner.create_partner(
            db_session,
            name=f"Partner {n}",
            username=username or f"partner{n}",
            email=f"partner{n}@example.com",
            password_hash="not-a-real-hash",
            partner_code=partner_code or f"CODE{n:04d}",
            referred_by=referred_by,
            is_admin=is_admin,
        )
    return _make_partner


@pytest.fixture
def test_partner(make_partner) -> Partner:
    return make_partner(partner_code="PARTNER1")


@pytest.fixture
def admin_partner(make_partner) -> Partner:
    return make_partner(partner_code="ADMIN001", is_admin=True, username="admin")


def auth_headers_for(partner: Partner) -> dict:
    token = create_access_token({"sub": str(partner.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_partner: Partner) -> dict:
    return auth_headers_for(test_partner)


@pytest.fixture
def admin_auth_headers(admin_partner: Partner) -> dict:
    return auth_headers_for(admin_partner)
