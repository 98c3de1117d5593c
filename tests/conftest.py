import os
import sys
import os.path
import tempfile

import pytest
import pytest_asyncio
import httpx

# Добавляем папку "linkhub" (исходники приложения) в sys.path
src_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "linkhub"))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

# Устанавливаем переменные окружения для тестовой среды до импорта приложения
db_dir = tempfile.mkdtemp(prefix="linkhub-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(db_dir, 'test.db')}"  # тестовая база SQLite
os.environ["REDIS_URL"] = "redis://dummy:6379/0"  # dummy адрес для Redis

from app import app
from core.database import Base, engine, SessionLocal

# Переопределяем redis_client в модуле авторизации хранилищем в памяти
import api.auth


class DummyRedis:
    def __init__(self, *args, **kwargs):
        self.data = {}

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture(autouse=True)
def fresh_state():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    api.auth.redis_client = DummyRedis()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_store():
    return api.auth.redis_client


@pytest_asyncio.fixture
async def async_client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def make_user(async_client):
    """Регистрирует пользователя через API и возвращает его публичные данные."""

    async def _make_user(username="alice", email=None, password="secret1", **extra):
        payload = {
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
            **extra,
        }
        response = await async_client.post("/api/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _make_user


@pytest_asyncio.fixture
async def make_link(async_client):
    async def _make_link(owner_id, title="Site", url="https://x.com", **extra):
        payload = {"owner_id": owner_id, "title": title, "url": url, **extra}
        response = await async_client.post("/api/links/", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make_link
